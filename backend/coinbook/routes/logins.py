"""Login session route handlers.

Endpoints:
    GET  /api/logins                    -- Recent sessions (admin sees all, staff see their own).
    POST /api/logins/{session_id}/end   -- Close a session.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query

from coinbook.auth.dependencies import get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.services.user_service import UserService

router = APIRouter(prefix="/logins", tags=["Logins"])


def _get_service() -> UserService:
    """Build a UserService wired to the current database."""
    db = get_database()
    return UserService(UserDAL(db), LoginSessionDAL(db))


@router.get("")
async def list_sessions(
    username: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    if user["role"] != "admin":
        username = user["username"]
    sessions = await _get_service().list_sessions(username=username, limit=limit)
    return [s.to_response() for s in sessions]


@router.post("/{session_id}/end")
async def end_session(
    session_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    session = await _get_service().end_session(session_id)
    return session.to_response()
