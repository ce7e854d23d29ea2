from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from .manager import (
    build_submission,
    describe_actions,
    get_emergencies,
    get_emergency,
    get_emergency_stats,
    get_recent_emergencies,
    submit_emergency,
    transition_emergency,
)
from .models import EmergencyPriority, EmergencyStatus, EmergencyType, PhotoUpload, TransitionRequest
from emergency_hub.auth.manager import get_current_user, require_operator
from emergency_hub.auth.models import Session
from emergency_hub.shared.response import success_response

router = APIRouter()


async def read_photos(files: Optional[List[UploadFile]]) -> List[PhotoUpload]:
    photos = []
    for upload in files or []:
        photos.append(PhotoUpload(
            filename=upload.filename or "photo",
            content_type=upload.content_type,
            data=await upload.read(),
        ))
    return photos


@router.post("/")
async def submit(
    type: str = Form(...),
    priority: str = Form(...),
    title: str = Form(...),
    description: str = Form(...),
    latitude: float = Form(...),
    longitude: float = Form(...),
    address: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    skip_images: bool = Query(False),
    session: Session = Depends(get_current_user),
):
    """Submit a new emergency report with up to five photos."""
    submission = build_submission({
        "type": type,
        "priority": priority,
        "title": title,
        "description": description,
        "location": {"latitude": latitude, "longitude": longitude, "address": address},
        "phone": phone,
    })
    photos = [] if skip_images else await read_photos(images)
    result = await submit_emergency(submission, photos, session, skip_images=skip_images)
    message = "Emergency reported successfully! Response teams have been notified."
    if result.skipped_photos:
        message += f" {len(result.skipped_photos)} image(s) could not be uploaded."
    return success_response(result, message)


@router.get("/")
async def get_all_emergencies(
    search: Optional[str] = Query(None),
    status: Optional[EmergencyStatus] = Query(None),
    type: Optional[EmergencyType] = Query(None),
    priority: Optional[EmergencyPriority] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    mine: bool = Query(False),
    session: Session = Depends(get_current_user),
):
    """Get all emergencies with optional filters; mine=true lists only the caller's reports"""
    filters = {
        "search": search,
        "status": status.value if status else None,
        "type": type.value if type else None,
        "priority": priority.value if priority else None,
    }
    reporter_id = session.user_id if mine else None
    data = await get_emergencies(filters, page, page_size, reporter_id=reporter_id)
    return success_response(data, "Emergencies retrieved successfully")


@router.get("/recent")
async def recent(limit: int = Query(10, ge=1, le=50), session: Session = Depends(get_current_user)):
    """Most recently reported emergencies"""
    return success_response(await get_recent_emergencies(limit), "Recent emergencies retrieved")


@router.get("/stats/dashboard")
async def get_stats(session: Session = Depends(require_operator)):
    """Get emergency statistics"""
    return success_response(await get_emergency_stats(), "Emergency stats retrieved successfully")


@router.get("/{emergency_id}")
async def get_single_emergency(emergency_id: str, session: Session = Depends(get_current_user)):
    """Get a single emergency by ID"""
    report = await get_emergency(emergency_id)
    data = report.model_dump(mode="json")
    data["available_actions"] = describe_actions(report) if session.is_operator else []
    return success_response(data, "Emergency retrieved successfully")


@router.post("/{emergency_id}/{action}")
async def act_on_emergency(
    emergency_id: str,
    action: Literal["acknowledge", "respond", "resolve", "close"],
    request: Optional[TransitionRequest] = None,
    session: Session = Depends(require_operator),
):
    """Acknowledge, respond to, resolve or close an emergency"""
    report = await transition_emergency(emergency_id, action, session, request)
    return success_response(report, f"Emergency {report.status.value}")
