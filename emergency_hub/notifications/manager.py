from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from .models import Notification, NotificationType
from .utils import manager, topic_for_user
from emergency_hub.shared.db import execute_query
from emergency_hub.shared.errors import NotFound
from emergency_hub.shared.utils import serialize_row

logger = logging.getLogger("notifications.manager")

NOTIFICATION_COLUMNS = "id, user_id, title, message, type, read, data, created_at"

ACTION_MESSAGES = {
    "acknowledged": 'Emergency "{title}" has been acknowledged by {actor}',
    "responded": 'Emergency "{title}" is now being responded to by {actor}',
    "resolved": 'Emergency "{title}" has been resolved by {actor}',
    "closed": 'Emergency "{title}" has been closed by {actor}',
}


async def notify_user(user_id: str, event: str, data: Dict) -> None:
    """Push an event to the user's live subscription, if connected."""
    logger.info(f"Sending notification to user {user_id}: event={event}")
    await manager.broadcast(topic_for_user(user_id), {"event": event, "data": data})


async def create_notification(
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.UPDATE,
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    """Store a notification for exactly one user and push it live."""
    notification_id = str(uuid4())
    result = await execute_query(
        f"""
        INSERT INTO notifications (id, user_id, title, message, type, read, data, created_at)
        VALUES ($1, $2, $3, $4, $5, FALSE, $6, NOW())
        RETURNING {NOTIFICATION_COLUMNS}
        """,
        (notification_id, user_id, title, message, NotificationType(type).value, data),
        fetch_one=True
    )
    notification = Notification(**serialize_row(result))
    await notify_user(user_id, "notification", notification.model_dump(mode="json"))
    return notification


def action_message(action: str, emergency_title: str, actor_name: str) -> str:
    return ACTION_MESSAGES[action].format(title=emergency_title, actor=actor_name)


async def create_emergency_action_notification(
    emergency_id: str,
    emergency_title: str,
    action: str,
    actor_name: str,
    reporter_id: str,
) -> Optional[Notification]:
    """
    Tell the reporter their emergency changed state.

    Best-effort: any failure is logged and swallowed so it never affects
    the outcome of the transition that triggered it.
    """
    try:
        notification = await create_notification(
            reporter_id,
            f"Emergency {action.capitalize()}",
            action_message(action, emergency_title, actor_name),
            NotificationType.EMERGENCY,
            {"emergency_id": emergency_id, "action": action},
        )
        logger.info(f"Created notification for emergency {emergency_id} action: {action}")
        return notification
    except Exception as e:
        logger.error(f"Error creating notification for emergency {emergency_id} ({action}): {e}")
        return None


async def get_user_notifications(user_id: str) -> Dict[str, Any]:
    """Newest-first notifications for a user with the unread count."""
    rows = await execute_query(
        f"""
        SELECT {NOTIFICATION_COLUMNS} FROM notifications
        WHERE user_id = $1
        ORDER BY created_at DESC
        """,
        (user_id,),
    )
    notifications = [Notification(**serialize_row(r)) for r in rows]
    unread = sum(1 for n in notifications if not n.read)
    logger.info(f"Fetched {len(notifications)} notifications for user {user_id} ({unread} unread)")
    return {"notifications": notifications, "unread_count": unread}


async def mark_notification_read(notification_id: str, user_id: str) -> Notification:
    """Flip read on one of the user's own notifications."""
    result = await execute_query(
        f"""
        UPDATE notifications SET read = TRUE
        WHERE id = $1 AND user_id = $2
        RETURNING {NOTIFICATION_COLUMNS}
        """,
        (notification_id, user_id),
        fetch_one=True
    )
    if not result:
        logger.warning(f"Notification {notification_id} not found for user {user_id}")
        raise NotFound("Notification not found")
    return Notification(**serialize_row(result))


async def mark_all_notifications_read(user_id: str) -> int:
    """Mark every unread notification of the user as read; returns how many changed."""
    rows = await execute_query(
        """
        UPDATE notifications SET read = TRUE
        WHERE user_id = $1 AND read = FALSE
        RETURNING id
        """,
        (user_id,),
    )
    logger.info(f"Marked {len(rows)} notifications as read for user {user_id}")
    return len(rows)
