"""Account activity log."""
import logging
from typing import Optional

from pymongo.errors import PyMongoError

from app.models.account import Account
from app.models.user_log import UserAction, UserLog

logger = logging.getLogger(__name__)


async def record_user_log(
    user_id: str,
    user_type: str,
    full_name: str,
    action: UserAction,
    *,
    details: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Write a log entry; a failed write is logged and does not fail the request."""
    try:
        await UserLog(
            user_id=user_id,
            user_type=user_type,
            full_name=full_name,
            action=action,
            details=details,
            ip_address=ip_address,
        ).insert()
    except PyMongoError as e:
        logger.error(f"Failed to write {action.value} log for {user_id}: {e}")


async def log_account_action(account: Account, action: UserAction, **kwargs) -> None:
    await record_user_log(account.id_number, account.role.value, account.full_name, action, **kwargs)


async def recent_logs(
    user_type: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = 100,
) -> list[UserLog]:
    query = {}
    if user_type:
        query["user_type"] = user_type
    if user_id:
        query["user_id"] = user_id
    return await UserLog.find(query).sort("-timestamp").limit(limit).to_list()
