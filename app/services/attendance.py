"""Attendance validation and reporting.

A student's attendance in a session moves once, from unrecorded to recorded
(Present or Late), and never back. ``AttendanceValidator.record_attendance``
runs the checks in a fixed order so the client always gets the most useful
rejection: missing session or student, enrollment, expiry, code match and
finally the duplicate check. The duplicate check and the roster append are a
single insert guarded by the unique (session, student) index, so two
concurrent submissions from the same student cannot both succeed while
different students never contend.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pymongo.errors import DuplicateKeyError

from app.errors import (
    AlreadyRecorded,
    CodeExpired,
    CourseNotFound,
    InvalidCode,
    NotEnrolled,
    SessionNotFound,
    StudentNotFound,
)
from app.models.attendance import (
    AttendanceEntry,
    AttendanceStatus,
    CourseStats,
    HistoryItem,
    OverallStats,
    SessionStats,
    StudentStats,
)
from app.models.session import Session
from app.services.enrollment import EnrollmentGateway
from app.services.sessions import SessionManager
from app.services.stores import AccountDirectory, AttendanceLedger, CourseDirectory, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordAttendanceInput:
    student_id: str
    unique_code: str
    is_manual_code: bool = False
    course_code: Optional[str] = None
    session_id: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class RecordResult:
    session_id: str
    course_code: str
    student_id: str
    student_name: str
    status: AttendanceStatus
    time_recorded: datetime


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


class AttendanceValidator:
    def __init__(
        self,
        sessions: SessionManager,
        courses: CourseDirectory,
        accounts: AccountDirectory,
        enrollment: EnrollmentGateway,
        attendance: AttendanceLedger,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._sessions = sessions
        self._courses = courses
        self._accounts = accounts
        self._enrollment = enrollment
        self._attendance = attendance
        self._clock = clock or sessions.now

    async def _resolve_session(self, data: RecordAttendanceInput) -> Session:
        if data.session_id:
            session = await self._sessions.get_session(data.session_id)
            if data.course_code and session.course_code != data.course_code:
                raise SessionNotFound(f"{data.course_code}/{data.session_id}")
            return session
        if not data.course_code:
            raise SessionNotFound("")
        course = await self._courses.by_code(data.course_code)
        if not course:
            raise SessionNotFound(data.course_code)
        session = await self._sessions.current_session(str(course.id))
        if not session:
            raise SessionNotFound(data.course_code)
        return session

    def effective_expiry(self, session: Session, claimed: Optional[datetime]) -> datetime:
        """The session's stored expiry, shortened by the payload's claim if earlier.

        A claim later than the stored expiry cannot extend the window.
        """
        if claimed is None:
            return session.code_expires_at
        claimed = to_naive_utc(claimed)
        if claimed > session.code_expires_at:
            logger.warning(
                f"Ignoring expiresAt {claimed.isoformat()} beyond session {session.id} "
                f"expiry {session.code_expires_at.isoformat()}"
            )
            return session.code_expires_at
        return claimed

    async def record_attendance(self, data: RecordAttendanceInput) -> RecordResult:
        session = await self._resolve_session(data)
        session_id = str(session.id)

        student = await self._accounts.student(data.student_id)
        if not student:
            raise StudentNotFound(data.student_id)

        if not await self._enrollment.is_enrolled(session.course_id, student.id_number):
            logger.warning(f"Rejected {student.id_number} for {session.course_code}: not enrolled")
            raise NotEnrolled(student.id_number, session.course_code)

        now = self._clock()
        if now > self.effective_expiry(session, data.expires_at):
            logger.warning(f"Rejected {student.id_number} for session {session_id}: code expired")
            raise CodeExpired()

        if data.unique_code != session.code:
            logger.warning(f"Rejected {student.id_number} for session {session_id}: code mismatch")
            raise InvalidCode()

        status = AttendanceStatus.LATE if data.is_manual_code else AttendanceStatus.PRESENT
        entry = AttendanceEntry(
            session_id=session_id,
            course_id=session.course_id,
            student_id=student.id_number,
            student_name=student.full_name,
            status=status,
            is_manual_code=data.is_manual_code,
            time_recorded=now,
        )
        try:
            await self._attendance.add(entry)
        except DuplicateKeyError:
            raise AlreadyRecorded(student.id_number)

        logger.info(f"Recorded {status.value} for {student.id_number} in session {session_id}")
        return RecordResult(
            session_id=session_id,
            course_code=session.course_code,
            student_id=student.id_number,
            student_name=student.full_name,
            status=status,
            time_recorded=now,
        )


class AttendanceReporter:
    def __init__(
        self,
        sessions: SessionStore,
        courses: CourseDirectory,
        accounts: AccountDirectory,
        attendance: AttendanceLedger,
    ):
        self._sessions = sessions
        self._courses = courses
        self._accounts = accounts
        self._attendance = attendance

    async def course_stats(self, course_id: str) -> CourseStats:
        course = await self._courses.get(course_id)
        if not course:
            raise CourseNotFound(course_id)

        sessions = await self._sessions.list_for_course(course_id)
        entries = await self._attendance.for_course(course_id)
        enrolled = list(course.students)

        names = {a.id_number: a.full_name for a in await self._accounts.students(enrolled)}
        by_session: dict[str, dict[str, AttendanceStatus]] = {}
        for e in entries:
            by_session.setdefault(e.session_id, {})[e.student_id] = e.status
            names.setdefault(e.student_id, e.student_name)

        session_stats = []
        for s in sessions:
            marks = by_session.get(str(s.id), {})
            statuses = list(marks.values())
            session_stats.append(
                SessionStats(
                    session_id=str(s.id),
                    date=s.session_date,
                    day=s.day,
                    present=statuses.count(AttendanceStatus.PRESENT),
                    late=statuses.count(AttendanceStatus.LATE),
                    absent=sum(1 for sid in enrolled if sid not in marks),
                )
            )

        total = len(sessions)
        student_ids = enrolled + sorted({e.student_id for e in entries} - set(enrolled))
        student_stats = []
        for sid in student_ids:
            marks = [by_session.get(str(s.id), {}).get(sid) for s in sessions]
            present = marks.count(AttendanceStatus.PRESENT)
            late = marks.count(AttendanceStatus.LATE)
            student_stats.append(
                StudentStats(
                    student_id=sid,
                    student_name=names.get(sid, "Unknown"),
                    present=present,
                    late=late,
                    absent=total - present - late,
                    attendance_rate=round((present + late) * 100.0 / total, 1) if total else 0.0,
                )
            )

        return CourseStats(
            course_id=course_id,
            course_code=course.course_code,
            overall_stats=OverallStats(
                total_students=len(enrolled),
                total_sessions=total,
                session_stats=session_stats,
            ),
            student_stats=student_stats,
        )

    async def student_history(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[HistoryItem]:
        """Entries recorded between ``start`` and ``end`` inclusive; aware bounds are converted to UTC."""
        entries = await self._attendance.for_student(
            student_id,
            course_id,
            start=to_naive_utc(start) if start else None,
            end=to_naive_utc(end) if end else None,
        )
        sessions = {
            str(s.id): s for s in await self._sessions.get_many(list({e.session_id for e in entries}))
        }
        items = []
        for e in entries:
            s = sessions.get(e.session_id)
            items.append(
                HistoryItem(
                    session_id=e.session_id,
                    course_id=e.course_id,
                    course_code=s.course_code if s else None,
                    date=s.session_date if s else None,
                    day=s.day if s else None,
                    status=e.status,
                    time_recorded=e.time_recorded,
                )
            )
        return items
