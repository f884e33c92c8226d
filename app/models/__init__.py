"""Beanie document models and Pydantic schemas."""
from app.models.account import Account, AccountRole, AccountCreate, AccountOut
from app.models.course import Course, CourseCreate, CourseUpdate, CourseOut, ScheduleEntry
from app.models.session import Session, SessionType
from app.models.attendance import AttendanceEntry, AttendanceStatus
from app.models.user_log import UserLog, UserAction

__all__ = [
    "Account",
    "AccountRole",
    "AccountCreate",
    "AccountOut",
    "Course",
    "CourseCreate",
    "CourseUpdate",
    "CourseOut",
    "ScheduleEntry",
    "Session",
    "SessionType",
    "AttendanceEntry",
    "AttendanceStatus",
    "UserLog",
    "UserAction",
]
