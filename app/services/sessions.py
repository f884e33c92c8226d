"""Session manager: the day's attendance session for a course."""
from __future__ import annotations

import logging
import random
from datetime import date, datetime
from typing import Callable, Optional

import pytz
from pymongo.errors import DuplicateKeyError

from app.config import settings
from app.errors import CourseNotFound, SessionNotFound
from app.models.attendance import AttendanceEntry
from app.models.session import Session, SessionType
from app.services.codes import issue_code
from app.services.stores import AttendanceLedger, CourseDirectory, SessionStore

logger = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def default_code_ttls() -> dict[SessionType, int]:
    # scheduled and instructor QR windows differ, see DESIGN.md
    return {
        SessionType.SCHEDULED: settings.scheduled_code_ttl_seconds,
        SessionType.INSTRUCTOR_QR: settings.instructor_qr_code_ttl_seconds,
    }


def weekday_label(day: date) -> str:
    return WEEKDAYS[day.weekday()]


class SessionManager:
    def __init__(
        self,
        sessions: SessionStore,
        courses: CourseDirectory,
        attendance: AttendanceLedger,
        *,
        code_ttls: Optional[dict[SessionType, int]] = None,
        code_length: Optional[int] = None,
        timezone: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        rng: Optional[random.Random] = None,
    ):
        self._sessions = sessions
        self._courses = courses
        self._attendance = attendance
        self._code_ttls = code_ttls or default_code_ttls()
        self._code_length = code_length or settings.attendance_code_length
        self._tz = pytz.timezone(timezone or settings.timezone)
        self._clock = clock
        self._rng = rng

    def now(self) -> datetime:
        """Naive UTC, the same convention Mongo hands back."""
        return self._clock()

    def calendar_day(self, when: Optional[datetime] = None) -> date:
        """Calendar day of ``when`` in the configured timezone.

        Aware datetimes are converted; naive ones are taken as already local.
        Without ``when`` the clock (UTC) is converted.
        """
        if when is None:
            return pytz.utc.localize(self.now()).astimezone(self._tz).date()
        if when.tzinfo is not None:
            return when.astimezone(self._tz).date()
        return when.date()

    def local_time(self, utc_naive: datetime) -> datetime:
        return pytz.utc.localize(utc_naive).astimezone(self._tz)

    def ttl_for(self, session_type: SessionType) -> int:
        return self._code_ttls[session_type]

    async def get_or_create_session(
        self,
        course_id: str,
        when: Optional[datetime] = None,
        session_type: SessionType = SessionType.SCHEDULED,
    ) -> tuple[Session, bool]:
        """Return the course's session for the calendar day of ``when``.

        An existing session is returned untouched (its code is not reset) with
        ``created=False``.
        """
        course = await self._courses.get(course_id)
        if not course:
            raise CourseNotFound(course_id)

        day = self.calendar_day(when)
        session_date = day.isoformat()
        existing = await self._sessions.find_for_course_date(course_id, session_date)
        if existing:
            return existing, False

        label = weekday_label(day)
        schedule = course.schedule_for(label)
        code = issue_code(self.now(), self.ttl_for(session_type), length=self._code_length, rng=self._rng)
        session = Session(
            course_id=course_id,
            course_code=course.course_code,
            session_date=session_date,
            day=label,
            start_time=schedule.start_time if schedule else None,
            end_time=schedule.end_time if schedule else None,
            room=schedule.room if schedule else None,
            session_type=session_type,
            code=code.code,
            code_generated_at=code.generated_at,
            code_expires_at=code.expires_at,
        )
        try:
            await self._sessions.insert(session)
        except DuplicateKeyError:
            # lost the race against a concurrent first request for the same day
            winner = await self._sessions.find_for_course_date(course_id, session_date)
            if winner is None:
                raise
            return winner, False

        logger.info(f"Created {session_type.value} session {session.id} for {course.course_code} on {session_date}")
        return session, True

    async def get_session(self, session_id: str) -> Session:
        session = await self._sessions.get(session_id)
        if not session:
            raise SessionNotFound(session_id)
        return session

    async def get_roster(self, session_id: str) -> list[AttendanceEntry]:
        return await self._attendance.for_session(session_id)

    async def current_session(self, course_id: str) -> Optional[Session]:
        """Today's session for the course, else its most recent one."""
        today = self.calendar_day().isoformat()
        session = await self._sessions.find_for_course_date(course_id, today)
        if session:
            return session
        return await self._sessions.latest_for_course(course_id)

    async def refresh_code(self, session_id: str) -> Session:
        """Replace the session's code, with the window of the session's own type."""
        session = await self.get_session(session_id)
        code = issue_code(
            self.now(),
            self.ttl_for(session.session_type),
            length=self._code_length,
            rng=self._rng,
        )
        session.code = code.code
        session.code_generated_at = code.generated_at
        session.code_expires_at = code.expires_at
        await self._sessions.save(session)
        logger.info(f"Rotated attendance code for session {session_id}")
        return session

    async def list_for_course(self, course_id: str) -> list[Session]:
        course = await self._courses.get(course_id)
        if not course:
            raise CourseNotFound(course_id)
        return await self._sessions.list_for_course(course_id)
