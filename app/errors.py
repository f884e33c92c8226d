"""Attendance domain errors.

Every error carries a machine-readable ``kind`` and a human message so the
client can tell, for example, an expired code (offer manual entry) from an
invalid one. ``status_code`` is the HTTP status the API layer answers with.
"""


class AttendanceError(Exception):
    """Base exception for attendance business rules."""

    kind = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class NotFoundError(AttendanceError):
    kind = "not_found"
    status_code = 404


class CourseNotFound(NotFoundError):
    def __init__(self, course_ref: str):
        self.course_ref = course_ref
        super().__init__(f"Course '{course_ref}' not found")


class SessionNotFound(NotFoundError):
    def __init__(self, session_ref: str):
        self.session_ref = session_ref
        super().__init__(f"No attendance session found for '{session_ref}'")


class StudentNotFound(NotFoundError):
    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__(f"Student '{student_id}' not found")


class NotEnrolled(AttendanceError):
    kind = "not_enrolled"
    status_code = 403

    def __init__(self, student_id: str, course_code: str):
        super().__init__(f"Student {student_id} is not enrolled in {course_code}")


class CodeExpired(AttendanceError):
    kind = "code_expired"
    status_code = 410

    def __init__(self, message: str = "Attendance code has expired"):
        super().__init__(message)


class InvalidCode(AttendanceError):
    kind = "invalid_code"
    status_code = 400

    def __init__(self, message: str = "Invalid attendance code"):
        super().__init__(message)


class InvalidRequest(AttendanceError):
    """A submission missing what is needed to locate the session or check the code."""

    kind = "invalid_request"
    status_code = 400


class AlreadyRecorded(AttendanceError):
    """Soft rejection: the student is already on the roster."""

    kind = "already_recorded"
    status_code = 200

    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__("Attendance already recorded for this session")


class Unavailable(AttendanceError):
    """Storage did not answer in time. Safe for the caller to retry."""

    kind = "unavailable"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Attendance service temporarily unavailable, please retry"):
        super().__init__(message)
