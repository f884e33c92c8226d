"""One dated occurrence of a course meeting."""
from datetime import datetime
from enum import Enum
from typing import Optional

import pymongo
from beanie import Document
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo import IndexModel

from app.models.attendance import AttendanceEntry, AttendanceEntryOut
from app.models.common import UtcDateTime


class SessionType(str, Enum):
    """Selects the code validity window.

    ``scheduled`` sessions use the long window, ``instructor_qr`` sessions the
    short rotating one shown on the instructor's QR screen.
    """

    SCHEDULED = "scheduled"
    INSTRUCTOR_QR = "instructor_qr"


class Session(Document):
    """Attendance session: at most one per course per calendar date."""

    course_id: str
    course_code: str
    session_date: str  # YYYY-MM-DD
    day: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    room: Optional[str] = None
    session_type: SessionType = SessionType.SCHEDULED

    code: str
    code_generated_at: datetime
    code_expires_at: datetime

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "sessions"
        use_state_management = True
        indexes = [
            IndexModel(
                [("course_id", pymongo.ASCENDING), ("session_date", pymongo.ASCENDING)],
                name="uniq_course_date",
                unique=True,
            ),
        ]


class SessionOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    course_id: str
    course_code: str
    date: str
    day: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    room: Optional[str] = None
    session_type: SessionType
    unique_code: str
    code_generated_at: UtcDateTime
    expires_at: UtcDateTime
    students: list[AttendanceEntryOut] = Field(default_factory=list)

    @classmethod
    def from_document(cls, session: "Session", roster: Optional[list[AttendanceEntry]] = None) -> "SessionOut":
        return cls(
            id=str(session.id),
            course_id=session.course_id,
            course_code=session.course_code,
            date=session.session_date,
            day=session.day,
            start_time=session.start_time,
            end_time=session.end_time,
            room=session.room,
            session_type=session.session_type,
            unique_code=session.code,
            code_generated_at=session.code_generated_at,
            expires_at=session.code_expires_at,
            students=[
                AttendanceEntryOut(
                    student_id=e.student_id,
                    student_name=e.student_name,
                    status=e.status,
                    is_manual_code=e.is_manual_code,
                    time_recorded=e.time_recorded,
                )
                for e in roster or []
            ],
        )


class SessionCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    course_id: str
    date: Optional[datetime] = None  # defaults to now; only the calendar day is used
    day: Optional[str] = None
    session_type: SessionType = SessionType.SCHEDULED
