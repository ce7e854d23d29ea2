"""
Shared fixtures: sessions for each role and an in-memory stand-in for the
emergencies repository, so the workflow can be exercised without PostgreSQL.
"""
import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

# Force environment variables BEFORE importing the app
os.environ["JWT_SECRET"] = "test-secret-key-for-testing"
os.environ.pop("DATABASE_URL", None)

from emergency_hub.auth.models import Session, UserRole
from emergency_hub.emergencies import repository
from emergency_hub.emergencies.models import (
    ActorStamp,
    EmergencyPriority,
    EmergencyReport,
    EmergencyStatus,
    EmergencySubmit,
    EmergencyType,
    Location,
    Note,
    Reporter,
)
from emergency_hub.notifications import manager as notifications_manager
from emergency_hub.notifications.models import Notification, NotificationType


def iso(dt: datetime) -> str:
    return dt.isoformat()


class FakeEmergencyStore:
    """Mimics the single-statement writes of emergencies.repository."""

    def __init__(self):
        self.reports = {}
        self.clock = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
        self.fetch_calls = 0
        self.write_calls = 0

    def tick(self) -> str:
        self.clock += timedelta(minutes=1)
        return iso(self.clock)

    def add(self, status=EmergencyStatus.REPORTED, reporter_id=None, title="Kitchen fire", **overrides) -> EmergencyReport:
        now = self.tick()
        report = EmergencyReport(
            id=str(uuid4()),
            type=overrides.pop("type", EmergencyType.FIRE),
            priority=overrides.pop("priority", EmergencyPriority.HIGH),
            status=status,
            title=title,
            description="Smoke coming out of the second floor",
            location=overrides.pop("location", Location(latitude=6.45, longitude=3.39, address="12 Marina Rd")),
            reporter=Reporter(id=reporter_id or str(uuid4()), name="Ada Reporter", phone="+2348000000"),
            created_at=now,
            updated_at=now,
            **overrides,
        )
        self.reports[report.id] = report
        return report

    async def fetch_emergency(self, emergency_id):
        self.fetch_calls += 1
        report = self.reports.get(emergency_id)
        return report.model_copy(deep=True) if report else None

    async def insert_emergency(self, emergency_id, submission: EmergencySubmit, reporter: Reporter, images):
        self.write_calls += 1
        now = self.tick()
        report = EmergencyReport(
            id=emergency_id,
            type=submission.type,
            priority=submission.priority,
            status=EmergencyStatus.REPORTED,
            title=submission.title,
            description=submission.description,
            location=submission.location,
            reporter=reporter,
            images=list(images),
            created_at=now,
            updated_at=now,
        )
        self.reports[emergency_id] = report
        return report.model_copy(deep=True)

    async def apply_transition(self, emergency_id, transition, actor_id, actor_name, note, version):
        self.write_calls += 1
        report = self.reports.get(emergency_id)
        if report is None or report.version != version:
            return None
        now = self.tick()
        changes = {
            "status": transition.target,
            transition.stamp_column: ActorStamp(id=actor_id, name=actor_name, timestamp=now),
            "updated_at": now,
            "version": report.version + 1,
        }
        if transition.completed_at_column:
            changes[transition.completed_at_column] = now
        if note is not None:
            changes["notes"] = report.notes + [
                Note(text=note, user_id=actor_id, user_name=actor_name, action=transition.past_tense, timestamp=now)
            ]
        updated = report.model_copy(update=changes, deep=True)
        self.reports[emergency_id] = updated
        return updated.model_copy(deep=True)

    async def list_emergencies(self, filters, page=1, page_size=10):
        matches = [
            r for r in sorted(self.reports.values(), key=lambda r: r.created_at, reverse=True)
            if all(getattr(r, key).value == value for key, value in filters.items() if key in ("status", "type", "priority"))
            and filters.get("reporter_id") in (None, r.reporter.id)
        ]
        start = (page - 1) * page_size
        return matches[start:start + page_size], len(matches)

    async def fetch_all_emergencies(self):
        return sorted(self.reports.values(), key=lambda r: r.created_at, reverse=True)

    async def count_by_status(self):
        counts = {}
        for report in self.reports.values():
            counts[report.status.value] = counts.get(report.status.value, 0) + 1
        return counts


class NotificationRecorder:
    def __init__(self):
        self.sent = []
        self.fail_with = None

    async def create_notification(self, user_id, title, message, type=NotificationType.UPDATE, data=None):
        if self.fail_with:
            raise self.fail_with
        notification = Notification(
            id=str(uuid4()), user_id=user_id, title=title, message=message, type=type, data=data,
        )
        self.sent.append(notification)
        return notification


@pytest.fixture
def store(monkeypatch):
    fake = FakeEmergencyStore()
    for name in ("fetch_emergency", "insert_emergency", "apply_transition",
                 "list_emergencies", "fetch_all_emergencies", "count_by_status"):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def notifications(monkeypatch):
    recorder = NotificationRecorder()
    monkeypatch.setattr(notifications_manager, "create_notification", recorder.create_notification)
    return recorder


def make_session(role: UserRole, name: str) -> Session:
    return Session(
        user_id=str(uuid4()),
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        phone="+2348011111111",
        role=role,
    )


@pytest.fixture
def responder():
    return make_session(UserRole.RESPONDER, "Tunde Responder")


@pytest.fixture
def admin():
    return make_session(UserRole.ADMIN, "Grace Admin")


@pytest.fixture
def citizen():
    return make_session(UserRole.PUBLIC, "Ada Reporter")
