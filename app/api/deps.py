"""Shared dependencies: service wiring, JWT auth and the admin header check."""
from datetime import datetime, timedelta
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.models.account import Account, AccountRole
from app.services.attendance import AttendanceReporter, AttendanceValidator
from app.services.credentials import AccountCredentialProvider, CredentialProvider
from app.services.enrollment import CourseEnrollmentGateway, EnrollmentGateway
from app.services.sessions import SessionManager
from app.services.stores import (
    AccountDirectory,
    AttendanceLedger,
    CourseDirectory,
    SessionStore,
    parse_object_id,
)

security = HTTPBearer(auto_error=False)


def create_access_token(subject: str, role: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = {"sub": subject, "role": role, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(subject: str) -> str:
    expire = datetime.utcnow() + timedelta(days=settings.jwt_refresh_token_expire_days)
    to_encode = {"sub": subject, "exp": expire, "type": "refresh"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_current_account(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Account:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = jwt.decode(credentials.credentials, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        account_id = payload.get("sub")
        if not account_id or payload.get("type") != "access":
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    oid = parse_object_id(account_id)
    account = await Account.get(oid) if oid else None
    if not account or not account.is_active:
        raise HTTPException(status_code=401, detail="Account not found or inactive")
    return account


# Service wiring; tests swap these through app.dependency_overrides

def get_session_store() -> SessionStore:
    return SessionStore()


def get_enrollment_gateway() -> EnrollmentGateway:
    return CourseEnrollmentGateway()


def get_credential_provider() -> CredentialProvider:
    return AccountCredentialProvider()


def get_session_manager(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionManager:
    return SessionManager(sessions, CourseDirectory(), AttendanceLedger())


def get_attendance_validator(
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    enrollment: Annotated[EnrollmentGateway, Depends(get_enrollment_gateway)],
) -> AttendanceValidator:
    return AttendanceValidator(manager, CourseDirectory(), AccountDirectory(), enrollment, AttendanceLedger())


def get_attendance_reporter(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AttendanceReporter:
    return AttendanceReporter(sessions, CourseDirectory(), AccountDirectory(), AttendanceLedger())


async def require_admin(
    provider: Annotated[CredentialProvider, Depends(get_credential_provider)],
    admin_id: Annotated[Optional[str], Header(alias="admin-id")] = None,
    admin_password: Annotated[Optional[str], Header(alias="admin-password")] = None,
) -> str:
    if not admin_id or not admin_password:
        raise HTTPException(status_code=401, detail="Admin credentials required")
    if not await provider.verify_admin(admin_id, admin_password):
        raise HTTPException(status_code=401, detail="Invalid admin credentials")
    return admin_id


def require_roles(*allowed: AccountRole):
    async def checker(account: Annotated[Account, Depends(get_current_account)]) -> Account:
        if account.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return account

    return checker


# Type aliases for route injection
CurrentAccount = Annotated[Account, Depends(get_current_account)]
InstructorOrAdmin = Annotated[Account, Depends(require_roles(AccountRole.INSTRUCTOR, AccountRole.ADMIN))]
AdminOnly = Annotated[str, Depends(require_admin)]
Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Validator = Annotated[AttendanceValidator, Depends(get_attendance_validator)]
Reporter = Annotated[AttendanceReporter, Depends(get_attendance_reporter)]
Enrollment = Annotated[EnrollmentGateway, Depends(get_enrollment_gateway)]
