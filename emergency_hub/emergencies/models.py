from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from emergency_hub.shared import config


class EmergencyType(str, Enum):
    FIRE = "fire"
    FLOOD = "flood"
    ARMED_CONFLICT = "armed_conflict"
    MEDICAL = "medical"
    ACCIDENT = "accident"
    NATURAL_DISASTER = "natural_disaster"
    OTHER = "other"


class EmergencyPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EmergencyStatus(str, Enum):
    REPORTED = "reported"
    ACKNOWLEDGED = "acknowledged"
    RESPONDING = "responding"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class Reporter(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None


class ActorStamp(BaseModel):
    id: str
    name: str
    timestamp: str


class Note(BaseModel):
    text: str
    user_id: str
    user_name: str
    action: Optional[str] = None
    timestamp: str


class EmergencySubmit(BaseModel):
    """Form input for a new report. Photos travel separately as uploads."""
    type: EmergencyType
    priority: EmergencyPriority
    title: str
    description: str
    location: Location
    phone: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_long_enough(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description is required")
        if len(v) < config.MIN_DESCRIPTION_LENGTH:
            raise ValueError(f"Description must be at least {config.MIN_DESCRIPTION_LENGTH} characters")
        return v

    @model_validator(mode="after")
    def location_required(self):
        if self.location.latitude == 0 and self.location.longitude == 0:
            raise ValueError("Location is required")
        return self


class TransitionRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)
    expected_version: Optional[int] = Field(None, ge=1)


class EmergencyReport(BaseModel):
    id: str
    type: EmergencyType
    priority: EmergencyPriority
    status: EmergencyStatus
    title: str
    description: str
    location: Location
    reporter: Reporter
    images: List[str] = []
    acknowledged_by: Optional[ActorStamp] = None
    responded_by: Optional[ActorStamp] = None
    resolved_by: Optional[ActorStamp] = None
    closed_by: Optional[ActorStamp] = None
    resolved_at: Optional[str] = None
    closed_at: Optional[str] = None
    notes: List[Note] = []
    version: int = 1
    created_at: str
    updated_at: str


class PhotoUpload(BaseModel):
    """A photo read from the request, before it reaches the blob store."""
    filename: str
    content_type: Optional[str] = None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class SubmissionResult(BaseModel):
    emergency_id: str
    status: EmergencyStatus
    images: List[str]
    skipped_photos: List[dict] = []
    created_at: str
