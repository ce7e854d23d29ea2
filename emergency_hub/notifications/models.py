from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    EMERGENCY = "emergency"
    UPDATE = "update"
    SYSTEM = "system"


class Notification(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool = False
    data: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
