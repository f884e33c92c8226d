from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import AdminOnly
from app.services.user_logs import recent_logs

router = APIRouter()


@router.get("/")
async def list_logs(
    admin: AdminOnly,
    user_type: Optional[str] = Query(None, alias="userType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(100, ge=1, le=1000),
):
    """Recent login, logout and attendance activity."""
    logs = await recent_logs(user_type=user_type, user_id=user_id, limit=limit)
    return [
        {
            "id": str(log.id),
            "userId": log.user_id,
            "userType": log.user_type,
            "fullName": log.full_name,
            "action": log.action.value,
            "details": log.details,
            "ipAddress": log.ip_address,
            "timestamp": log.timestamp.isoformat(),
        }
        for log in logs
    ]
