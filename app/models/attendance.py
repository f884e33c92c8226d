from datetime import datetime
from enum import Enum
from typing import Optional

import pymongo
from beanie import Document, Indexed
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo import IndexModel

from app.models.common import UtcDateTime


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    LATE = "Late"
    ABSENT = "Absent"


class AttendanceEntry(Document):
    """One student's attendance in one session.

    The roster of a session is the set of entries sharing its ``session_id``;
    the unique (session_id, student_id) index is what rejects duplicates.
    """
    session_id: str
    course_id: Indexed(str)
    student_id: Indexed(str)  # ID number
    student_name: str
    status: AttendanceStatus
    is_manual_code: bool = False
    time_recorded: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "session_attendance"
        indexes = [
            IndexModel(
                [("session_id", pymongo.ASCENDING), ("student_id", pymongo.ASCENDING)],
                name="uniq_session_student",
                unique=True,
            ),
        ]


class AttendanceEntryOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    student_id: str
    student_name: str
    status: AttendanceStatus
    is_manual_code: bool = False
    time_recorded: UtcDateTime


class SessionStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    date: str
    day: str
    present: int = 0
    late: int = 0
    absent: int = 0


class StudentStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    student_id: str
    student_name: str
    present: int = 0
    late: int = 0
    absent: int = 0
    attendance_rate: float = 0.0  # percent of sessions attended, late included


class OverallStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_students: int = 0
    total_sessions: int = 0
    session_stats: list[SessionStats] = Field(default_factory=list)


class CourseStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    course_id: str
    course_code: str
    overall_stats: OverallStats
    student_stats: list[StudentStats] = Field(default_factory=list)


class HistoryItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    course_id: str
    course_code: Optional[str] = None
    date: Optional[str] = None
    day: Optional[str] = None
    status: AttendanceStatus
    time_recorded: UtcDateTime
