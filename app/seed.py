"""Seed the admin account if not present."""
from app.config import settings
from app.models.account import Account, AccountRole
from app.services.accounts import get_password_hash


async def seed_admin():
    existing = await Account.find_one(Account.id_number == settings.admin_id)
    if existing:
        return
    await Account(
        id_number=settings.admin_id,
        hashed_password=get_password_hash(settings.admin_password),
        role=AccountRole.ADMIN,
        full_name=settings.admin_full_name,
    ).insert()
