"""Student accounts (admin only)."""
from fastapi import APIRouter, Query

from app.api.deps import AdminOnly
from app.models.account import AccountCreate, AccountOut, AccountRole
from app.services.accounts import account_to_out, create_account, deactivate_account, get_account, list_accounts

router = APIRouter()


@router.get("/", response_model=list[AccountOut])
async def list_students(
    admin: AdminOnly,
    search: str | None = Query(None, description="Search by name or ID number"),
):
    return [account_to_out(a) for a in await list_accounts(AccountRole.STUDENT, search)]


@router.post("/", response_model=AccountOut, status_code=201)
async def create_student(data: AccountCreate, admin: AdminOnly):
    return account_to_out(await create_account(data, AccountRole.STUDENT))


@router.get("/{id_number}", response_model=AccountOut)
async def get_student(id_number: str, admin: AdminOnly):
    return account_to_out(await get_account(id_number, AccountRole.STUDENT))


@router.delete("/{id_number}")
async def delete_student(id_number: str, admin: AdminOnly):
    """Deactivate (soft delete) a student; past attendance stays on the rosters."""
    await deactivate_account(id_number, AccountRole.STUDENT)
    return {"success": True, "message": "Student deleted successfully"}
