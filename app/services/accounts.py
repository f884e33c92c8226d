"""Account helpers: password hashing and role-scoped CRUD."""
from datetime import datetime
from typing import Optional

import bcrypt
from fastapi import HTTPException

from app.models.account import Account, AccountCreate, AccountOut, AccountRole


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def account_to_out(account: Account) -> AccountOut:
    return AccountOut(
        id=str(account.id),
        id_number=account.id_number,
        full_name=account.full_name,
        role=account.role,
        is_active=account.is_active,
        created_at=account.created_at,
    )


async def create_account(data: AccountCreate, role: AccountRole) -> Account:
    existing = await Account.find_one(Account.id_number == data.id_number)
    if existing:
        raise HTTPException(status_code=400, detail=f"ID number {data.id_number} already registered")
    account = Account(
        id_number=data.id_number.strip(),
        full_name=data.full_name.strip(),
        hashed_password=get_password_hash(data.password),
        role=role,
    )
    await account.insert()
    return account


async def list_accounts(role: AccountRole, search: Optional[str] = None) -> list[Account]:
    query = {"role": role.value, "is_active": True}
    if search and search.strip():
        q = search.strip()
        query["$or"] = [
            {"full_name": {"$regex": q, "$options": "i"}},
            {"id_number": {"$regex": q, "$options": "i"}},
        ]
    return await Account.find(query).sort("id_number").to_list()


async def get_account(id_number: str, role: AccountRole) -> Account:
    account = await Account.find_one(Account.id_number == id_number, Account.role == role)
    if not account:
        raise HTTPException(status_code=404, detail=f"{role.value.title()} not found")
    return account


async def deactivate_account(id_number: str, role: AccountRole) -> None:
    account = await get_account(id_number, role)
    account.is_active = False
    account.updated_at = datetime.utcnow()
    await account.save()
