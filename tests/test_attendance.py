import asyncio
from datetime import timedelta, timezone

import pytest

from app.errors import (
    AlreadyRecorded,
    CodeExpired,
    InvalidCode,
    NotEnrolled,
    SessionNotFound,
    StudentNotFound,
)
from app.models.attendance import AttendanceEntry, AttendanceStatus
from app.services.attendance import RecordAttendanceInput
from tests.conftest import NOW, make_course, make_student


@pytest.fixture
async def session(manager, cs101):
    s, _ = await manager.get_or_create_session(str(cs101.id), NOW)
    return s


def scan(session, student_id="2021001", **overrides):
    fields = dict(
        student_id=student_id,
        unique_code=session.code,
        is_manual_code=False,
        course_code=session.course_code,
        session_id=str(session.id),
    )
    fields.update(overrides)
    return RecordAttendanceInput(**fields)


async def test_scan_then_rescan_then_late_manual_entry(validator, manager, session, clock):
    result = await validator.record_attendance(scan(session))
    assert result.status == AttendanceStatus.PRESENT
    assert result.time_recorded == NOW
    assert result.student_name == "Ana Reyes"

    with pytest.raises(AlreadyRecorded):
        await validator.record_attendance(scan(session))

    clock.advance(seconds=1801)
    with pytest.raises(CodeExpired):
        await validator.record_attendance(scan(session, "2021002", is_manual_code=True, session_id=None))

    roster = await manager.get_roster(str(session.id))
    assert [(e.student_id, e.status) for e in roster] == [("2021001", AttendanceStatus.PRESENT)]


async def test_manual_code_is_always_late(validator, session):
    result = await validator.record_attendance(scan(session, is_manual_code=True))
    assert result.status == AttendanceStatus.LATE
    entry = await AttendanceEntry.find_one(AttendanceEntry.student_id == "2021001")
    assert entry.is_manual_code is True


async def test_resolves_todays_session_from_course_code(validator, session):
    result = await validator.record_attendance(scan(session, session_id=None))
    assert result.session_id == str(session.id)


async def test_unknown_session_or_course(validator, session, db):
    with pytest.raises(SessionNotFound):
        await validator.record_attendance(scan(session, session_id="652f1c2e9b1e8a0012345678"))
    with pytest.raises(SessionNotFound):
        await validator.record_attendance(scan(session, session_id=None, course_code="NOPE"))
    with pytest.raises(SessionNotFound):
        await validator.record_attendance(scan(session, course_code="OTHER"))


async def test_course_without_any_session(validator, db):
    await make_student("2030001")
    await make_course("MATH1", students=["2030001"])
    with pytest.raises(SessionNotFound):
        await validator.record_attendance(
            RecordAttendanceInput(student_id="2030001", unique_code="AAAAAA", course_code="MATH1")
        )


async def test_unknown_student(validator, session):
    with pytest.raises(StudentNotFound):
        await validator.record_attendance(scan(session, "1999999"))


async def test_not_enrolled_wins_over_valid_code(validator, session):
    with pytest.raises(NotEnrolled):
        await validator.record_attendance(scan(session, "2021003"))


async def test_not_enrolled_even_with_expired_code(validator, session, clock):
    clock.advance(hours=2)
    with pytest.raises(NotEnrolled):
        await validator.record_attendance(scan(session, "2021003"))


async def test_code_match_is_exact_and_case_sensitive(validator, session):
    with pytest.raises(InvalidCode):
        await validator.record_attendance(scan(session, unique_code=session.code.lower() + "x"))
    with pytest.raises(InvalidCode):
        await validator.record_attendance(scan(session, unique_code="ZZZZZZ" if session.code != "ZZZZZZ" else "YYYYYY"))


async def test_matching_code_after_expiry_is_rejected(validator, session, clock):
    clock.now = session.code_expires_at + timedelta(seconds=1)
    with pytest.raises(CodeExpired):
        await validator.record_attendance(scan(session))


async def test_code_still_valid_at_expiry_instant(validator, session, clock):
    clock.now = session.code_expires_at
    result = await validator.record_attendance(scan(session))
    assert result.status == AttendanceStatus.PRESENT


async def test_payload_expiry_cannot_extend_window(validator, session, clock):
    forged = (session.code_expires_at + timedelta(hours=5)).replace(tzinfo=timezone.utc)
    clock.advance(hours=1)
    with pytest.raises(CodeExpired):
        await validator.record_attendance(scan(session, expires_at=forged))


async def test_payload_expiry_can_shorten_window(validator, session, clock):
    short = (NOW + timedelta(seconds=120)).replace(tzinfo=timezone.utc)
    clock.advance(seconds=121)
    with pytest.raises(CodeExpired):
        await validator.record_attendance(scan(session, expires_at=short))

    clock.now = NOW + timedelta(seconds=60)
    result = await validator.record_attendance(scan(session, expires_at=short))
    assert result.status == AttendanceStatus.PRESENT


async def test_rotated_code_invalidates_previous_one(validator, manager, session):
    old = session.code
    await manager.refresh_code(str(session.id))
    with pytest.raises(InvalidCode):
        await validator.record_attendance(scan(session, unique_code=old))


async def test_already_recorded_is_a_soft_rejection(validator, session):
    await validator.record_attendance(scan(session))
    with pytest.raises(AlreadyRecorded) as exc:
        await validator.record_attendance(scan(session, is_manual_code=True))
    assert exc.value.status_code == 200
    assert exc.value.to_response()["kind"] == "already_recorded"
    entries = await AttendanceEntry.find(AttendanceEntry.student_id == "2021001").to_list()
    assert len(entries) == 1
    assert entries[0].status == AttendanceStatus.PRESENT


async def test_parallel_submissions_from_distinct_students(validator, manager, db, clock):
    ids = [f"20220{i:02d}" for i in range(25)]
    for sid in ids:
        await make_student(sid)
    course = await make_course("BIG100", students=ids)
    session, _ = await manager.get_or_create_session(str(course.id), NOW)

    results = await asyncio.gather(*[validator.record_attendance(scan(session, sid)) for sid in ids])

    assert {r.student_id for r in results} == set(ids)
    roster = await manager.get_roster(str(session.id))
    assert sorted(e.student_id for e in roster) == sorted(ids)


async def test_parallel_duplicates_from_one_student_record_once(validator, manager, session):
    outcomes = await asyncio.gather(
        *[validator.record_attendance(scan(session)) for _ in range(5)],
        return_exceptions=True,
    )

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 1
    assert all(isinstance(o, AlreadyRecorded) for o in outcomes if isinstance(o, Exception))
    assert len(await manager.get_roster(str(session.id))) == 1
