import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("TIMEZONE", "UTC")

import random
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from app.db import DOCUMENT_MODELS
from app.models.account import Account, AccountRole
from app.models.course import Course, ScheduleEntry
from app.services.attendance import AttendanceReporter, AttendanceValidator
from app.services.enrollment import CourseEnrollmentGateway
from app.services.sessions import SessionManager
from app.services.stores import AccountDirectory, AttendanceLedger, CourseDirectory, SessionStore

# Monday
NOW = datetime(2026, 10, 19, 9, 0, 0)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["attendance_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def manager(db, clock):
    return SessionManager(
        SessionStore(),
        CourseDirectory(),
        AttendanceLedger(),
        timezone="UTC",
        clock=clock,
        rng=random.Random(42),
    )


@pytest.fixture
def validator(manager):
    return AttendanceValidator(
        manager,
        CourseDirectory(),
        AccountDirectory(),
        CourseEnrollmentGateway(),
        AttendanceLedger(),
    )


@pytest.fixture
def reporter(db):
    return AttendanceReporter(SessionStore(), CourseDirectory(), AccountDirectory(), AttendanceLedger())


async def make_student(id_number: str, full_name: str = "", hashed_password: str = "unused") -> Account:
    account = Account(
        id_number=id_number,
        full_name=full_name or f"Student {id_number}",
        hashed_password=hashed_password,
        role=AccountRole.STUDENT,
    )
    await account.insert()
    return account


async def make_course(course_code: str = "CS101", students: list[str] | None = None) -> Course:
    course = Course(
        course_code=course_code,
        course_name="Intro to Computing",
        instructor_id="I-001",
        enrollment_code=f"E{course_code}",
        schedules=[
            ScheduleEntry(day="Monday", start_time="09:00", end_time="10:30", room="R101"),
            ScheduleEntry(day="Wednesday", start_time="13:00", end_time="14:30", room="R202"),
        ],
        students=students or [],
    )
    await course.insert()
    return course


@pytest_asyncio.fixture
async def cs101(db):
    await make_student("2021001", "Ana Reyes")
    await make_student("2021002", "Ben Cruz")
    await make_student("2021003", "Cai Lim")
    return await make_course("CS101", students=["2021001", "2021002"])
