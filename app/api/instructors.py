"""Instructor accounts (admin only)."""
from fastapi import APIRouter, Query

from app.api.deps import AdminOnly
from app.models.account import AccountCreate, AccountOut, AccountRole
from app.services.accounts import account_to_out, create_account, deactivate_account, get_account, list_accounts

router = APIRouter()


@router.get("/", response_model=list[AccountOut])
async def list_instructors(admin: AdminOnly, search: str | None = Query(None)):
    return [account_to_out(a) for a in await list_accounts(AccountRole.INSTRUCTOR, search)]


@router.post("/", response_model=AccountOut, status_code=201)
async def create_instructor(data: AccountCreate, admin: AdminOnly):
    return account_to_out(await create_account(data, AccountRole.INSTRUCTOR))


@router.get("/{id_number}", response_model=AccountOut)
async def get_instructor(id_number: str, admin: AdminOnly):
    return account_to_out(await get_account(id_number, AccountRole.INSTRUCTOR))


@router.delete("/{id_number}")
async def delete_instructor(id_number: str, admin: AdminOnly):
    await deactivate_account(id_number, AccountRole.INSTRUCTOR)
    return {"success": True, "message": "Instructor deleted successfully"}
