import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import CourseNotFound, SessionNotFound
from app.models.session import Session, SessionType
from app.services.sessions import SessionManager, weekday_label
from app.services.stores import AttendanceLedger, CourseDirectory, SessionStore
from tests.conftest import NOW


async def test_creates_session_from_course_schedule(manager, cs101):
    session, created = await manager.get_or_create_session(str(cs101.id), NOW)

    assert created is True
    assert session.session_date == "2026-10-19"
    assert session.day == "Monday"
    assert (session.start_time, session.end_time, session.room) == ("09:00", "10:30", "R101")
    assert session.course_code == "CS101"
    assert len(session.code) == 6
    assert session.code_generated_at == NOW
    assert session.code_expires_at == NOW + timedelta(seconds=1800)


async def test_same_calendar_day_returns_same_session(manager, cs101, clock):
    first, _ = await manager.get_or_create_session(str(cs101.id), datetime(2026, 10, 19, 7, 5))
    clock.advance(hours=5)
    second, created = await manager.get_or_create_session(str(cs101.id), datetime(2026, 10, 19, 22, 59))

    assert created is False
    assert second.id == first.id
    # the code is not reset by a second request
    assert second.code == first.code
    assert second.code_expires_at == first.code_expires_at


async def test_next_day_gets_a_new_session(manager, cs101):
    monday, _ = await manager.get_or_create_session(str(cs101.id), NOW)
    tuesday, created = await manager.get_or_create_session(str(cs101.id), NOW + timedelta(days=1))

    assert created is True
    assert tuesday.id != monday.id
    assert tuesday.day == "Tuesday"
    # no Tuesday meeting in the schedule
    assert tuesday.room is None and tuesday.start_time is None


async def test_unknown_course_is_rejected(manager, db):
    with pytest.raises(CourseNotFound):
        await manager.get_or_create_session("652f1c2e9b1e8a0012345678", NOW)
    with pytest.raises(CourseNotFound):
        await manager.get_or_create_session("not-an-id", NOW)


async def test_instructor_qr_sessions_use_short_window(manager, cs101):
    session, _ = await manager.get_or_create_session(str(cs101.id), NOW, SessionType.INSTRUCTOR_QR)
    assert session.code_expires_at - session.code_generated_at == timedelta(seconds=120)


async def test_aware_dates_use_configured_timezone(db, cs101, clock):
    manila = SessionManager(SessionStore(), CourseDirectory(), AttendanceLedger(), timezone="Asia/Manila", clock=clock)
    # 17:30 UTC on Sunday is already Monday in Manila
    session, _ = await manila.get_or_create_session(
        str(cs101.id), datetime(2026, 10, 18, 17, 30, tzinfo=timezone.utc)
    )
    assert session.session_date == "2026-10-19"
    assert session.day == "Monday"


async def test_default_day_comes_from_clock(manager, cs101):
    session, _ = await manager.get_or_create_session(str(cs101.id))
    assert session.session_date == NOW.date().isoformat()


async def test_concurrent_first_requests_create_one_session(manager, cs101):
    results = await asyncio.gather(*[manager.get_or_create_session(str(cs101.id), NOW) for _ in range(10)])

    assert len({s.id for s, _ in results}) == 1
    assert sum(1 for _, created in results if created) == 1
    assert await Session.find(Session.course_id == str(cs101.id)).count() == 1


class _BlindSessionStore(SessionStore):
    """Misses the first lookup, as if a concurrent request inserted right after it."""

    def __init__(self):
        self.lookups = 0

    async def find_for_course_date(self, course_id, session_date):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return await super().find_for_course_date(course_id, session_date)


async def test_insert_conflict_returns_the_existing_session(db, cs101, clock):
    winner, _ = await SessionManager(
        SessionStore(), CourseDirectory(), AttendanceLedger(), clock=clock
    ).get_or_create_session(str(cs101.id), NOW)

    racer = SessionManager(_BlindSessionStore(), CourseDirectory(), AttendanceLedger(), clock=clock)
    session, created = await racer.get_or_create_session(str(cs101.id), NOW)

    assert created is False
    assert session.id == winner.id


async def test_refresh_code_issues_new_code_with_session_window(manager, cs101, clock):
    session, _ = await manager.get_or_create_session(str(cs101.id), NOW, SessionType.INSTRUCTOR_QR)
    old_code = session.code
    clock.advance(minutes=3)

    refreshed = await manager.refresh_code(str(session.id))

    assert refreshed.code != old_code
    assert refreshed.code_generated_at == clock.now
    assert refreshed.code_expires_at == clock.now + timedelta(seconds=120)
    stored = await manager.get_session(str(session.id))
    assert stored.code == refreshed.code


async def test_get_session_unknown_id(manager, db):
    with pytest.raises(SessionNotFound):
        await manager.get_session("652f1c2e9b1e8a0012345678")


async def test_current_session_falls_back_to_latest(manager, cs101, clock):
    monday, _ = await manager.get_or_create_session(str(cs101.id), NOW)
    clock.advance(days=2)

    assert (await manager.current_session(str(cs101.id))).id == monday.id

    wednesday, _ = await manager.get_or_create_session(str(cs101.id))
    assert (await manager.current_session(str(cs101.id))).id == wednesday.id
    assert wednesday.room == "R202"


async def test_list_for_course_is_date_ordered(manager, cs101):
    for offset in (2, 0, 1):
        await manager.get_or_create_session(str(cs101.id), NOW + timedelta(days=offset))
    sessions = await manager.list_for_course(str(cs101.id))
    assert [s.session_date for s in sessions] == ["2026-10-19", "2026-10-20", "2026-10-21"]


def test_weekday_label():
    assert weekday_label(datetime(2026, 10, 25).date()) == "Sunday"
