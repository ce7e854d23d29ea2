import logging
from typing import Dict, List, Optional
from urllib.parse import urlencode
from uuid import uuid4

import pydantic

from . import repository, storage
from .lifecycle import available_actions, check_transition, STATUS_ORDER
from .models import (
    EmergencyReport,
    EmergencyStatus,
    EmergencySubmit,
    PhotoUpload,
    Reporter,
    SubmissionResult,
    TransitionRequest,
)
from emergency_hub.auth.models import Session
from emergency_hub.notifications.manager import create_emergency_action_notification
from emergency_hub.shared import config
from emergency_hub.shared.errors import ConcurrentUpdate, NotFound, PermissionDenied, ValidationError
from emergency_hub.shared.utils import ensure_uuid, with_timeout

logger = logging.getLogger("emergencies.manager")


def build_submission(fields: Dict) -> EmergencySubmit:
    """Validate raw form fields into an EmergencySubmit or raise ValidationError."""
    try:
        return EmergencySubmit(**fields)
    except pydantic.ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        logger.warning(f"Rejected emergency submission: {errors}")
        raise ValidationError("Invalid emergency report", {"errors": errors})


async def _create_report(
    submission: EmergencySubmit,
    photos: List[PhotoUpload],
    session: Session,
    retry_hint: Dict,
) -> SubmissionResult:
    images, failures = await storage.upload_photos(photos) if photos else ([], None)

    emergency_id = str(uuid4())
    reporter = Reporter(
        id=session.user_id,
        name=session.name,
        phone=submission.phone or session.phone,
    )
    report = await with_timeout(
        repository.insert_emergency(emergency_id, submission, reporter, images),
        config.STORE_TIMEOUT_SECONDS,
        "Saving the emergency report",
        retry_hint,
    )
    logger.info(f"Emergency {report.id} created by user {session.user_id} with {len(images)} images")
    return SubmissionResult(
        emergency_id=report.id,
        status=report.status,
        images=report.images,
        skipped_photos=failures.to_dict() if failures else [],
        created_at=report.created_at,
    )


async def submit_emergency(
    submission: EmergencySubmit,
    photos: List[PhotoUpload],
    session: Session,
    skip_images: bool = False,
) -> SubmissionResult:
    """
    Submit a new emergency report.

    Photos are uploaded first and individually skipped on failure; the report
    is then written once with status reported. The whole operation is time
    boxed, and a timeout tells the client it may retry, with or without images.
    """
    logger.info(f"User {session.user_id} is submitting a {submission.type.value} emergency: {submission.title}")
    if skip_images:
        if photos:
            logger.info(f"Submitting without {len(photos)} images at the user's request")
        photos = []
    storage.check_photo_count(photos)

    retry_hint = {"retry": True, "retry_without_images": bool(photos)}
    return await with_timeout(
        _create_report(submission, photos, session, retry_hint),
        config.SUBMIT_TIMEOUT_SECONDS,
        "Submitting the emergency report",
        retry_hint,
    )


async def get_emergencies(
    filters: Optional[dict] = None,
    page: int = 1,
    page_size: int = 10,
    reporter_id: Optional[str] = None,
) -> dict:
    """Get emergencies with optional filters, search, and pagination.

    With reporter_id only that user's own reports are listed.
    """
    filters = {k: v for k, v in (filters or {}).items() if v}
    logger.info(f"Retrieving emergencies with filters: {filters} (page {page})")
    query_filters = dict(filters, reporter_id=reporter_id) if reporter_id else filters
    reports, total = await repository.list_emergencies(query_filters, page, page_size)

    def page_link(number: int) -> str:
        query = {"page": number, "page_size": page_size, **filters}
        if reporter_id:
            query["mine"] = "true"
        return f"/api/emergencies/?{urlencode(query)}"

    return {
        "emergencies": reports,
        "total": total,
        "page": page,
        "page_size": page_size,
        "next_page": page_link(page + 1) if page * page_size < total else None,
        "prev_page": page_link(page - 1) if page > 1 else None,
    }


async def get_emergency(emergency_id: str) -> EmergencyReport:
    """Get a single emergency by ID"""
    report = await repository.fetch_emergency(ensure_uuid(emergency_id, "emergency ID"))
    if not report:
        logger.warning(f"Emergency {emergency_id} not found")
        raise NotFound("Emergency not found")
    return report


async def get_recent_emergencies(limit: int = 10) -> List[EmergencyReport]:
    reports, _ = await repository.list_emergencies({}, 1, limit)
    return reports


async def get_emergency_stats() -> dict:
    """Counts per status plus the five latest reports still waiting for a responder"""
    counts = await repository.count_by_status()
    latest, _ = await repository.list_emergencies({"status": EmergencyStatus.REPORTED.value}, 1, 5)
    stats = {status.value: counts.get(status.value, 0) for status in STATUS_ORDER}
    stats["total"] = sum(stats.values())
    stats["latest_reported"] = latest
    return stats


async def transition_emergency(
    emergency_id: str,
    action: str,
    session: Session,
    request: Optional[TransitionRequest] = None,
) -> EmergencyReport:
    """
    Move a report along its lifecycle.

    Fetches the report, checks the action is allowed from its status, writes
    status, stamp and note atomically against the version that was read, then
    notifies the reporter on a best-effort basis.
    """
    request = request or TransitionRequest()
    if not session.is_operator:
        logger.warning(f"User {session.user_id} ({session.role.value}) may not {action} emergencies")
        raise PermissionDenied("Only responders and admins can update emergencies")

    emergency_id = ensure_uuid(emergency_id, "emergency ID")
    current = await repository.fetch_emergency(emergency_id)
    if not current:
        logger.warning(f"Emergency {emergency_id} not found for {action}")
        raise NotFound("Emergency not found")

    transition = check_transition(action, current.status)
    if request.expected_version is not None and request.expected_version != current.version:
        logger.warning(
            f"Emergency {emergency_id} is at version {current.version}, caller expected {request.expected_version}"
        )
        raise ConcurrentUpdate(
            "This emergency was updated by someone else. Refresh and try again.",
            {"current_version": current.version, "current_status": current.status.value},
        )

    note = request.note.strip() if request.note and request.note.strip() else None
    updated = await repository.apply_transition(
        emergency_id, transition, session.user_id, session.name, note, current.version
    )
    if updated is None:
        latest = await repository.fetch_emergency(emergency_id)
        if latest is None:
            raise NotFound("Emergency not found")
        logger.warning(f"Lost update race on emergency {emergency_id} ({action}); now {latest.status.value}")
        raise ConcurrentUpdate(
            "This emergency was updated by someone else. Refresh and try again.",
            {"current_version": latest.version, "current_status": latest.status.value},
        )

    logger.info(
        f"Emergency {emergency_id} {transition.past_tense} by {session.user_id}: "
        f"{current.status.value} -> {updated.status.value}"
    )
    await create_emergency_action_notification(
        emergency_id, updated.title, transition.past_tense, session.name, updated.reporter.id
    )
    return updated


async def acknowledge_emergency(emergency_id: str, session: Session, request: Optional[TransitionRequest] = None):
    return await transition_emergency(emergency_id, "acknowledge", session, request)


async def respond_to_emergency(emergency_id: str, session: Session, request: Optional[TransitionRequest] = None):
    return await transition_emergency(emergency_id, "respond", session, request)


async def resolve_emergency(emergency_id: str, session: Session, request: Optional[TransitionRequest] = None):
    return await transition_emergency(emergency_id, "resolve", session, request)


async def close_emergency(emergency_id: str, session: Session, request: Optional[TransitionRequest] = None):
    return await transition_emergency(emergency_id, "close", session, request)


def describe_actions(report: EmergencyReport) -> List[str]:
    """Actions an operator could take next on this report."""
    return available_actions(report.status)
