"""Enrollment gateway: which students belong to which course."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from app.errors import CourseNotFound
from app.models.course import Course
from app.services.stores import guarded, parse_object_id

logger = logging.getLogger(__name__)


class EnrollmentGateway(Protocol):
    async def is_enrolled(self, course_id: str, student_id: str) -> bool:
        raise NotImplementedError

    async def roster(self, course_id: str) -> list[str]:
        raise NotImplementedError

    async def enroll(self, course_id: str, student_id: str) -> bool:
        """Return False when the student was already enrolled."""

        raise NotImplementedError

    async def unenroll(self, course_id: str, student_id: str) -> bool:
        """Return False when the student was not enrolled."""

        raise NotImplementedError


class CourseEnrollmentGateway:
    """Backed by ``Course.students``; mutations are single atomic updates."""

    def _course_oid(self, course_id: str):
        oid = parse_object_id(course_id)
        if oid is None:
            raise CourseNotFound(course_id)
        return oid

    async def is_enrolled(self, course_id: str, student_id: str) -> bool:
        oid = parse_object_id(course_id)
        if oid is None:
            return False
        count = await guarded(
            Course.find({"_id": oid, "students": student_id}).count(),
            "enrollment check",
        )
        return count > 0

    async def roster(self, course_id: str) -> list[str]:
        oid = self._course_oid(course_id)
        course = await guarded(Course.get(oid), "course lookup")
        if not course:
            raise CourseNotFound(course_id)
        return list(course.students)

    async def _exists(self, oid) -> bool:
        return await guarded(Course.find({"_id": oid}).count(), "course lookup") > 0

    async def enroll(self, course_id: str, student_id: str) -> bool:
        oid = self._course_oid(course_id)
        result = await guarded(
            Course.get_motor_collection().update_one(
                {"_id": oid, "students": {"$ne": student_id}},
                {"$push": {"students": student_id}, "$set": {"updated_at": datetime.utcnow()}},
            ),
            "enroll",
        )
        if result.matched_count == 0:
            if not await self._exists(oid):
                raise CourseNotFound(course_id)
            return False
        logger.info(f"Enrolled student {student_id} in course {course_id}")
        return True

    async def unenroll(self, course_id: str, student_id: str) -> bool:
        oid = self._course_oid(course_id)
        result = await guarded(
            Course.get_motor_collection().update_one(
                {"_id": oid, "students": student_id},
                {"$pull": {"students": student_id}, "$set": {"updated_at": datetime.utcnow()}},
            ),
            "unenroll",
        )
        if result.matched_count == 0:
            if not await self._exists(oid):
                raise CourseNotFound(course_id)
            return False
        logger.info(f"Removed student {student_id} from course {course_id}")
        return True
