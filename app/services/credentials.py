"""Admin capability checks.

Admin requests carry ``admin-id`` / ``admin-password`` headers. Checking them is
the job of a credential provider injected into the API layer, so nothing in
the attendance core knows about authentication.
"""
from __future__ import annotations

import logging
from typing import Protocol

from app.models.account import Account, AccountRole
from app.services.accounts import verify_password
from app.services.stores import guarded

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    async def verify_admin(self, admin_id: str, password: str) -> bool:
        raise NotImplementedError


class AccountCredentialProvider:
    """Checks the headers against an active ``admin`` account."""

    async def verify_admin(self, admin_id: str, password: str) -> bool:
        account = await guarded(
            Account.find_one(
                Account.id_number == admin_id,
                Account.role == AccountRole.ADMIN,
                Account.is_active == True,  # noqa: E712
            ),
            "admin lookup",
        )
        if not account or not verify_password(password, account.hashed_password):
            logger.warning(f"Invalid admin credentials provided for {admin_id!r}")
            return False
        return True
