from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class UserAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    ATTENDANCE_MARKED = "attendance_marked"
    PROFILE_UPDATED = "profile_updated"


class UserLog(Document):
    """Audit trail of account activity."""
    user_id: Indexed(str)  # ID number
    user_type: str
    full_name: str
    action: UserAction
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: Indexed(datetime) = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_logs"
