"""ID-number and password login for students and instructors."""
from fastapi import APIRouter, HTTPException, Request
from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.api.deps import create_access_token, create_refresh_token, CurrentAccount
from app.config import settings
from app.models.account import Account, AccountOut, AccountRole
from app.models.user_log import UserAction
from app.services.accounts import account_to_out, verify_password
from app.services.stores import parse_object_id
from app.services.user_logs import log_account_action

router = APIRouter()


class TokenResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    account: AccountOut


class LoginRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id_number: str
    password: str
    role: AccountRole = AccountRole.STUDENT


class RefreshRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    refresh_token: str


def _tokens_for(account: Account) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(account.id), account.role.value),
        refresh_token=create_refresh_token(str(account.id)),
        account=account_to_out(account),
    )


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, request: Request):
    account = await Account.find_one(Account.id_number == req.id_number.strip(), Account.role == req.role)
    if not account or not account.is_active or not verify_password(req.password, account.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid ID number or password")
    await log_account_action(
        account,
        UserAction.LOGIN,
        ip_address=request.client.host if request.client else None,
    )
    return _tokens_for(account)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(req: RefreshRequest):
    try:
        payload = jwt.decode(req.refresh_token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        if payload.get("type") != "refresh":
            raise HTTPException(status_code=401, detail="Invalid token type")
        account_id = payload.get("sub")
        if not account_id:
            raise HTTPException(status_code=401, detail="Invalid refresh token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Expired or invalid refresh token")

    oid = parse_object_id(account_id)
    account = await Account.get(oid) if oid else None
    if not account or not account.is_active:
        raise HTTPException(status_code=401, detail="Account not found or inactive")
    return _tokens_for(account)


@router.post("/logout")
async def logout(account: CurrentAccount, request: Request):
    await log_account_action(
        account,
        UserAction.LOGOUT,
        ip_address=request.client.host if request.client else None,
    )
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=AccountOut)
async def me(account: CurrentAccount):
    return account_to_out(account)
