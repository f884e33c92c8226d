"""Courses and enrollment."""
from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.api.deps import AdminOnly, Enrollment
from app.models.account import Account, AccountOut, AccountRole
from app.models.course import Course, CourseCreate, CourseOut, CourseUpdate
from app.services.accounts import account_to_out
from app.services.codes import generate_enrollment_code
from app.services.stores import parse_object_id

router = APIRouter()

ENROLLMENT_CODE_ATTEMPTS = 5


class EnrollStudentRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    student_id: str


class EnrollByCodeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enrollment_code: str
    student_id: str


def course_to_out(course: Course) -> CourseOut:
    return CourseOut(
        id=str(course.id),
        course_code=course.course_code,
        course_name=course.course_name,
        instructor_id=course.instructor_id,
        enrollment_code=course.enrollment_code,
        schedules=course.schedules,
        students=course.students,
    )


async def _get_course(course_id: str) -> Course:
    oid = parse_object_id(course_id)
    course = await Course.get(oid) if oid else None
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


async def _unique_enrollment_code() -> str:
    for _ in range(ENROLLMENT_CODE_ATTEMPTS):
        code = generate_enrollment_code()
        if not await Course.find_one(Course.enrollment_code == code):
            return code
    raise HTTPException(status_code=500, detail="Could not generate unique enrollment code")


async def _require_student(student_id: str) -> Account:
    student = await Account.find_one(
        Account.id_number == student_id,
        Account.role == AccountRole.STUDENT,
        Account.is_active == True,  # noqa: E712
    )
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.get("/", response_model=list[CourseOut])
async def list_courses(admin: AdminOnly):
    courses = await Course.find_all().sort("course_code").to_list()
    return [course_to_out(c) for c in courses]


@router.post("/", response_model=CourseOut, status_code=201)
async def create_course(data: CourseCreate, admin: AdminOnly):
    if await Course.find_one(Course.course_code == data.course_code):
        raise HTTPException(status_code=400, detail=f"Course code {data.course_code} already exists")
    course = Course(
        course_code=data.course_code.strip(),
        course_name=data.course_name.strip(),
        instructor_id=data.instructor_id,
        enrollment_code=await _unique_enrollment_code(),
        schedules=data.schedules,
    )
    await course.insert()
    return course_to_out(course)


@router.get("/instructor/{instructor_id}", response_model=list[CourseOut])
async def instructor_courses(instructor_id: str):
    courses = await Course.find(Course.instructor_id == instructor_id).sort("course_code").to_list()
    return [course_to_out(c) for c in courses]


@router.post("/enroll")
async def enroll_with_code(data: EnrollByCodeRequest, enrollment: Enrollment):
    """Student self-enrollment with the course's enrollment code."""
    course = await Course.find_one(Course.enrollment_code == data.enrollment_code.strip().upper())
    if not course:
        raise HTTPException(status_code=404, detail="Invalid enrollment code")
    await _require_student(data.student_id)
    if not await enrollment.enroll(str(course.id), data.student_id):
        raise HTTPException(status_code=400, detail="Student is already enrolled in this course")
    return {"success": True, "message": "Student enrolled successfully", "course": course_to_out(await _get_course(str(course.id)))}


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(course_id: str):
    return course_to_out(await _get_course(course_id))


@router.get("/{course_id}/students", response_model=list[AccountOut])
async def course_students(course_id: str, enrollment: Enrollment):
    roster = await enrollment.roster(course_id)
    students = await Account.find({"id_number": {"$in": roster}, "role": AccountRole.STUDENT.value}).to_list()
    return [account_to_out(s) for s in sorted(students, key=lambda s: s.id_number)]


@router.post("/{course_id}/enroll-student")
async def enroll_student(course_id: str, data: EnrollStudentRequest, enrollment: Enrollment):
    await _require_student(data.student_id)
    if not await enrollment.enroll(course_id, data.student_id):
        raise HTTPException(status_code=400, detail="Student is already enrolled in this course")
    return {"success": True, "message": "Student enrolled successfully", "course": course_to_out(await _get_course(course_id))}


@router.delete("/{course_id}/students/{student_id}")
async def remove_student(course_id: str, student_id: str, admin: AdminOnly, enrollment: Enrollment):
    if not await enrollment.unenroll(course_id, student_id):
        raise HTTPException(status_code=400, detail="Student is not enrolled in this course")
    return {"success": True, "message": "Student removed successfully"}


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(course_id: str, data: CourseUpdate, admin: AdminOnly):
    course = await _get_course(course_id)
    update_data = data.model_dump(exclude_unset=True)
    if "course_code" in update_data and update_data["course_code"] != course.course_code:
        if await Course.find_one(Course.course_code == update_data["course_code"]):
            raise HTTPException(status_code=400, detail="Course code already exists")
    for key, value in update_data.items():
        setattr(course, key, value)
    course.updated_at = datetime.utcnow()
    await course.save()
    return course_to_out(course)


@router.delete("/{course_id}")
async def delete_course(course_id: str, admin: AdminOnly):
    """Delete a course. Its sessions and attendance are kept for history."""
    course = await _get_course(course_id)
    await course.delete()
    return {"success": True, "message": "Course deleted successfully"}
