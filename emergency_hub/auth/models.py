from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from emergency_hub.emergencies.models import Location


class UserRole(str, Enum):
    PUBLIC = "public"
    RESPONDER = "responder"
    ADMIN = "admin"


OPERATOR_ROLES = (UserRole.RESPONDER, UserRole.ADMIN)


class UserRegister(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=3, max_length=32)
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.PUBLIC

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=3, max_length=32)
    location: Optional[Location] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    phone: str
    role: UserRole
    location: Optional[Location] = None
    created_at: Optional[str] = None
    last_active_at: Optional[str] = None


class Session(BaseModel):
    """The authenticated principal, passed explicitly to every handler."""
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole

    @property
    def is_operator(self) -> bool:
        return self.role in OPERATOR_ROLES
