"""Courses, weekly schedules and enrolled students."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScheduleEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day: str  # Monday, Tuesday, ...
    start_time: str  # HH:MM
    end_time: str
    room: Optional[str] = None


class Course(Document):
    """Course document. ``students`` holds student ID numbers and is kept set-like."""

    course_code: Indexed(str, unique=True)
    course_name: str
    instructor_id: Indexed(str)
    enrollment_code: Indexed(str, unique=True)
    schedules: list[ScheduleEntry] = Field(default_factory=list)
    students: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "courses"
        use_state_management = True

    def schedule_for(self, day: str) -> Optional[ScheduleEntry]:
        for entry in self.schedules:
            if entry.day.strip().lower() == day.lower():
                return entry
        return None


class CourseCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    course_code: str = Field(min_length=1)
    course_name: str = Field(min_length=1)
    instructor_id: str
    schedules: list[ScheduleEntry] = Field(default_factory=list)


class CourseUpdate(BaseModel):
    """All fields optional for PUT; enrollment code and students are not updatable here."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    course_code: Optional[str] = None
    course_name: Optional[str] = None
    instructor_id: Optional[str] = None
    schedules: Optional[list[ScheduleEntry]] = None


class CourseOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    course_code: str
    course_name: str
    instructor_id: str
    enrollment_code: str
    schedules: list[ScheduleEntry] = []
    students: list[str] = []
