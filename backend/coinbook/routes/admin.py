"""Admin staff-management route handlers. All endpoints require role admin.

Endpoints:
    GET    /api/admin/users                          -- List staff, newest first.
    PUT    /api/admin/users/{user_id}                -- Set override totals.
    POST   /api/admin/users/{user_id}/reset-password -- Set a new password.
    DELETE /api/admin/users/{user_id}                -- Delete a non-admin account.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from coinbook.auth.dependencies import get_current_admin
from coinbook.dal.database import get_database
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.services.user_service import UserService

logger = logging.getLogger("coinbook.routes.admin")

router = APIRouter(prefix="/admin/users", tags=["Admin"])


def _get_service() -> UserService:
    """Build a UserService wired to the current database."""
    db = get_database()
    return UserService(UserDAL(db), LoginSessionDAL(db))


class UserTotalsRequest(BaseModel):
    total_payments: Any = None
    total_freeplay: Any = None
    total_deposit: Any = None
    total_redeem: Any = None


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., max_length=128)


@router.get("")
async def list_users(
    admin: dict[str, Any] = Depends(get_current_admin),
) -> list[dict[str, Any]]:
    users = await _get_service().list_users()
    return [u.to_response() for u in users]


@router.put("/{user_id}")
async def set_user_totals(
    body: UserTotalsRequest,
    user_id: str = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    user = await _get_service().set_totals(user_id, body.model_dump(exclude_unset=True))
    return user.to_response()


@router.post("/{user_id}/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    user_id: str = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    await _get_service().reset_password(user_id, body.password)
    logger.info("Admin %s reset password for user %s", admin["username"], user_id)
    return {"message": "Password updated"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    await _get_service().delete_user(user_id)
    logger.info("Admin %s deleted user %s", admin["username"], user_id)
    return {"message": "User deleted"}
