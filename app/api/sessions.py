"""Attendance sessions: create, QR codes, recording and statistics."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.api.deps import CurrentAccount, InstructorOrAdmin, Reporter, Sessions, Validator
from app.errors import InvalidRequest
from app.models.account import AccountRole
from app.models.attendance import AttendanceStatus, CourseStats, HistoryItem
from app.models.common import UtcDateTime
from app.models.session import SessionCreateRequest, SessionOut
from app.models.user_log import UserAction
from app.services.attendance import RecordAttendanceInput
from app.services.codes import build_qr_payload, parse_qr_payload, render_qr_png
from app.services.user_logs import record_user_log

router = APIRouter()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionResponse(_CamelModel):
    success: bool
    message: Optional[str] = None
    session: SessionOut


class SessionListResponse(_CamelModel):
    success: bool = True
    sessions: list[SessionOut]


class RecordAttendanceRequest(_CamelModel):
    student_id: str
    course_code: Optional[str] = None
    session_id: Optional[str] = None
    unique_code: Optional[str] = None
    is_manual_code: bool = False
    expires_at: Optional[datetime] = None
    qr_code_data: Optional[str] = None  # raw scanned payload; fills fields left empty


class RecordedStudent(_CamelModel):
    student_id: str
    full_name: str
    status: AttendanceStatus
    time_recorded: UtcDateTime


class RecordAttendanceResponse(_CamelModel):
    success: bool = True
    message: str
    session_id: str
    student: RecordedStudent


class QRCodeResponse(_CamelModel):
    success: bool = True
    qr_data: str
    unique_code: str
    expires_at: UtcDateTime


class CourseStatsResponse(CourseStats):
    success: bool = True


class HistoryResponse(_CamelModel):
    success: bool = True
    data: list[HistoryItem]


@router.post("/create", response_model=SessionResponse, status_code=201)
async def create_session(data: SessionCreateRequest, manager: Sessions, account: InstructorOrAdmin):
    """Create today's session for a course, or hand back the one that exists.

    ``day`` is accepted from older clients; the weekday label is always computed
    from the date.
    """
    session, created = await manager.get_or_create_session(data.course_id, data.date, data.session_type)
    if created:
        return SessionResponse(
            success=True,
            message="Attendance session created",
            session=SessionOut.from_document(session),
        )
    roster = await manager.get_roster(str(session.id))
    body = SessionResponse(
        success=False,
        message="A session already exists for this course today",
        session=SessionOut.from_document(session, roster),
    )
    return JSONResponse(status_code=409, content=body.model_dump(by_alias=True, mode="json"))


@router.post("/record", response_model=RecordAttendanceResponse, status_code=201)
async def record_attendance(
    data: RecordAttendanceRequest,
    request: Request,
    account: CurrentAccount,
    validator: Validator,
    manager: Sessions,
):
    """Record a student's attendance from a QR scan or a manually typed code.

    Students can only record themselves; instructors and admins may record
    any student.
    """
    student_id = data.student_id.strip()
    if account.role == AccountRole.STUDENT and account.id_number != student_id:
        raise HTTPException(status_code=403, detail="Students can only record their own attendance")

    session_id, course_code = data.session_id, data.course_code
    unique_code, expires_at = data.unique_code, data.expires_at
    # the scanned payload is only read for what the explicit fields leave out
    if data.qr_code_data and (not unique_code or not (session_id or course_code)):
        payload = parse_qr_payload(data.qr_code_data)
        session_id = session_id or payload.session_id
        course_code = course_code or payload.course_code
        unique_code = unique_code or payload.unique_code
        expires_at = expires_at or payload.expires_at

    if not unique_code:
        raise InvalidRequest("Attendance code is required")
    if not session_id and not course_code:
        raise InvalidRequest("Either sessionId or courseCode is required")

    result = await validator.record_attendance(
        RecordAttendanceInput(
            student_id=student_id,
            unique_code=unique_code.strip(),
            is_manual_code=data.is_manual_code,
            course_code=course_code,
            session_id=session_id,
            expires_at=expires_at,
        )
    )
    await record_user_log(
        result.student_id,
        "student",
        result.student_name,
        UserAction.ATTENDANCE_MARKED,
        details=f"{result.course_code} session {result.session_id}: {result.status.value}",
        ip_address=request.client.host if request.client else None,
    )
    local = manager.local_time(result.time_recorded)
    return RecordAttendanceResponse(
        message=f"Attendance recorded at {local.strftime('%H:%M:%S')} ({result.status.value})",
        session_id=result.session_id,
        student=RecordedStudent(
            student_id=result.student_id,
            full_name=result.student_name,
            status=result.status,
            time_recorded=result.time_recorded,
        ),
    )


@router.get("/course/{course_id}", response_model=SessionListResponse)
async def list_course_sessions(course_id: str, manager: Sessions, account: InstructorOrAdmin):
    sessions = await manager.list_for_course(course_id)
    return SessionListResponse(sessions=[SessionOut.from_document(s) for s in sessions])


@router.get("/stats/course/{course_id}", response_model=CourseStatsResponse)
async def course_session_stats(course_id: str, reporter: Reporter):
    """Per-session and per-student counts for reporting."""
    stats = await reporter.course_stats(course_id)
    return CourseStatsResponse(**stats.model_dump())


@router.get("/student/{student_id}", response_model=HistoryResponse)
async def student_attendance(
    student_id: str,
    reporter: Reporter,
    course_id: Optional[str] = Query(None, alias="courseId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
):
    """A student's records, newest first, optionally limited to a recording-time range."""
    items = await reporter.student_history(student_id, course_id, start=start_date, end=end_date)
    return HistoryResponse(data=items)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, manager: Sessions, account: InstructorOrAdmin):
    """Session with its roster, for the instructor's live attendance list."""
    session = await manager.get_session(session_id)
    roster = await manager.get_roster(session_id)
    return SessionResponse(success=True, session=SessionOut.from_document(session, roster))


@router.get("/{session_id}/qr", response_model=QRCodeResponse)
async def get_session_qr(session_id: str, manager: Sessions, account: InstructorOrAdmin):
    session = await manager.get_session(session_id)
    return QRCodeResponse(
        qr_data=build_qr_payload(session),
        unique_code=session.code,
        expires_at=session.code_expires_at,
    )


@router.get("/{session_id}/qr.png")
async def get_session_qr_png(session_id: str, manager: Sessions, account: InstructorOrAdmin):
    session = await manager.get_session(session_id)
    png = render_qr_png(build_qr_payload(session))
    return Response(content=png, media_type="image/png", headers={"Cache-Control": "no-store"})


@router.post("/{session_id}/refresh-code", response_model=SessionResponse)
async def refresh_session_code(session_id: str, manager: Sessions, account: InstructorOrAdmin):
    """Issue a new code for the session; the previous one stops working."""
    session = await manager.refresh_code(session_id)
    return SessionResponse(success=True, message="Attendance code refreshed", session=SessionOut.from_document(session))
