"""MongoDB access for the attendance core.

Every call is bounded by ``DB_OPERATION_TIMEOUT_SECONDS`` on top of the driver
timeouts; timeouts and lost connections surface as ``Unavailable``.
Duplicate-key errors pass through untouched, callers rely on them.
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Optional, TypeVar

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import ConnectionFailure, ExecutionTimeout, WTimeoutError

from app.config import settings
from app.errors import Unavailable
from app.models.account import Account, AccountRole
from app.models.attendance import AttendanceEntry
from app.models.course import Course
from app.models.session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded(awaitable: Awaitable[T], what: str, timeout: Optional[float] = None) -> T:
    timeout = settings.db_operation_timeout_seconds if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except (asyncio.TimeoutError, ConnectionFailure, ExecutionTimeout, WTimeoutError) as e:
        logger.error(f"MongoDB unavailable during {what}: {e!r}")
        raise Unavailable() from e


def parse_object_id(value: str) -> Optional[PydanticObjectId]:
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError, ValueError):
        return None


class SessionStore:
    async def get(self, session_id: str) -> Optional[Session]:
        oid = parse_object_id(session_id)
        if oid is None:
            return None
        return await guarded(Session.get(oid), "session lookup")

    async def get_many(self, session_ids: list[str]) -> list[Session]:
        oids = [oid for oid in (parse_object_id(s) for s in session_ids) if oid is not None]
        if not oids:
            return []
        return await guarded(Session.find({"_id": {"$in": oids}}).to_list(), "session lookup")

    async def find_for_course_date(self, course_id: str, session_date: str) -> Optional[Session]:
        return await guarded(
            Session.find_one(Session.course_id == course_id, Session.session_date == session_date),
            "session lookup",
        )

    async def latest_for_course(self, course_id: str) -> Optional[Session]:
        sessions = await guarded(
            Session.find(Session.course_id == course_id).sort("-session_date").limit(1).to_list(),
            "latest session lookup",
        )
        return sessions[0] if sessions else None

    async def list_for_course(self, course_id: str) -> list[Session]:
        return await guarded(
            Session.find(Session.course_id == course_id).sort("session_date").to_list(),
            "session listing",
        )

    async def insert(self, session: Session) -> Session:
        """Raises ``DuplicateKeyError`` when the course already has a session that day."""
        return await guarded(session.insert(), "session insert")

    async def save(self, session: Session) -> Session:
        return await guarded(session.save(), "session update")


class AttendanceLedger:
    async def add(self, entry: AttendanceEntry) -> AttendanceEntry:
        """Raises ``DuplicateKeyError`` when the student is already on the roster."""
        return await guarded(entry.insert(), "attendance insert")

    async def for_session(self, session_id: str) -> list[AttendanceEntry]:
        return await guarded(
            AttendanceEntry.find(AttendanceEntry.session_id == session_id)
            .sort("time_recorded")
            .to_list(),
            "roster lookup",
        )

    async def for_course(self, course_id: str) -> list[AttendanceEntry]:
        return await guarded(
            AttendanceEntry.find(AttendanceEntry.course_id == course_id).to_list(),
            "course attendance lookup",
        )

    async def for_student(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[AttendanceEntry]:
        query = {"student_id": student_id}
        if course_id:
            query["course_id"] = course_id
        if start or end:
            query["time_recorded"] = {}
            if start:
                query["time_recorded"]["$gte"] = start
            if end:
                query["time_recorded"]["$lte"] = end
        return await guarded(
            AttendanceEntry.find(query).sort("-time_recorded").to_list(),
            "student attendance lookup",
        )


class CourseDirectory:
    async def get(self, course_id: str) -> Optional[Course]:
        oid = parse_object_id(course_id)
        if oid is None:
            return None
        return await guarded(Course.get(oid), "course lookup")

    async def by_code(self, course_code: str) -> Optional[Course]:
        return await guarded(Course.find_one(Course.course_code == course_code), "course lookup")


class AccountDirectory:
    async def student(self, id_number: str) -> Optional[Account]:
        return await guarded(
            Account.find_one(
                Account.id_number == id_number,
                Account.role == AccountRole.STUDENT,
                Account.is_active == True,  # noqa: E712
            ),
            "student lookup",
        )

    async def students(self, id_numbers: list[str]) -> list[Account]:
        if not id_numbers:
            return []
        return await guarded(
            Account.find({"id_number": {"$in": id_numbers}, "role": AccountRole.STUDENT.value}).to_list(),
            "student lookup",
        )
