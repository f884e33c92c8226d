"""Attendance codes, QR payloads and enrollment codes."""
import io
import json
import random
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import qrcode
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from app.errors import InvalidCode
from app.models.common import iso_utc
from app.models.session import Session

CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class AttendanceCode:
    code: str
    generated_at: datetime
    expires_at: datetime


class QRPayload(BaseModel):
    """What the instructor's QR code carries. ``expires_at`` is mandatory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: Optional[str] = None
    course_id: Optional[str] = None
    course_code: str
    unique_code: str
    timestamp: datetime
    expires_at: datetime


def generate_code(length: int = 6, rng: Optional[random.Random] = None) -> str:
    """Random code drawn uniformly from A-Z0-9."""
    choose = rng.choice if rng is not None else secrets.choice
    return "".join(choose(CODE_ALPHABET) for _ in range(length))


def issue_code(
    now: datetime,
    ttl_seconds: int,
    *,
    length: int = 6,
    rng: Optional[random.Random] = None,
) -> AttendanceCode:
    return AttendanceCode(
        code=generate_code(length, rng),
        generated_at=now,
        expires_at=now + timedelta(seconds=ttl_seconds),
    )


def generate_enrollment_code() -> str:
    """8 upper-case hex characters, as handed out to students to self-enroll."""
    return secrets.token_hex(4).upper()


def build_qr_payload(session: Session) -> str:
    payload = {
        "sessionId": str(session.id) if session.id else None,
        "courseId": session.course_id,
        "courseCode": session.course_code,
        "uniqueCode": session.code,
        "timestamp": iso_utc(session.code_generated_at),
        "expiresAt": iso_utc(session.code_expires_at),
    }
    if payload["sessionId"] is None:
        del payload["sessionId"]
    return json.dumps(payload, separators=(",", ":"))


def parse_qr_payload(text: str) -> QRPayload:
    try:
        return QRPayload.model_validate_json(text)
    except ValidationError as e:
        raise InvalidCode("QR code is not a valid attendance code") from e


def render_qr_png(payload: str, *, box_size: int = 10, border: int = 4) -> bytes:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
