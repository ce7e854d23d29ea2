import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from .manager import get_user_notifications, mark_all_notifications_read, mark_notification_read
from .utils import manager, topic_for_user
from emergency_hub.auth.manager import get_current_user
from emergency_hub.auth.models import Session
from emergency_hub.auth.utils import decode_token
from emergency_hub.shared.response import success_response
from emergency_hub.shared.utils import ensure_uuid

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def get_my_notifications(session: Session = Depends(get_current_user)):
    """Get all notifications for the current user, newest first"""
    return success_response(await get_user_notifications(session.user_id), "Notifications retrieved")


@router.post("/read-all")
async def read_all(session: Session = Depends(get_current_user)):
    """Mark every notification of the current user as read"""
    updated = await mark_all_notifications_read(session.user_id)
    return success_response({"updated": updated}, "Notifications marked as read")


@router.post("/{notification_id}/read")
async def read_one(notification_id: str, session: Session = Depends(get_current_user)):
    """Mark a single notification as read"""
    notification = await mark_notification_read(ensure_uuid(notification_id, "notification ID"), session.user_id)
    return success_response(notification, "Notification marked as read")


@router.websocket("/ws/me")
async def ws_notifications_me(websocket: WebSocket):
    """Live feed of the caller's notifications. First message must be {"token": "..."}."""
    topic = None
    try:
        await websocket.accept()

        first_message = await websocket.receive_text()
        token = json.loads(first_message).get("token")
        if not token:
            await websocket.close(code=4001, reason="No token provided")
            return

        payload = decode_token(token)
        if not payload or "sub" not in payload:
            await websocket.close(code=4001, reason="Invalid token")
            return

        topic = topic_for_user(payload["sub"])
        await manager.subscribe(websocket, topic)

        # Keep connection alive; messages from client are ignored
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        logger.info(f"Subscriber left {topic or 'before authenticating'}")
    except (ValueError, AttributeError) as e:
        logger.error(f"Malformed WebSocket handshake: {e}")
        await websocket.close(code=4000, reason="Malformed handshake")
    finally:
        if topic:
            await manager.unsubscribe(websocket, topic)
