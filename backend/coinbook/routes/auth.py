"""Authentication route handlers.

Endpoints:
    POST /api/auth/signup  -- Create a staff account.
    POST /api/auth/login   -- Exchange credentials for a JWT.
    POST /api/auth/logout  -- Close the caller's login session.
    GET  /api/auth/me      -- Current user.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from coinbook.auth.dependencies import get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.middleware.rate_limit import rate_limiter
from coinbook.services.user_service import UserService

logger = logging.getLogger("coinbook.routes.auth")

router = APIRouter(prefix="/auth", tags=["Auth"])


def _get_service() -> UserService:
    """Build a UserService wired to the current database."""
    db = get_database()
    return UserService(UserDAL(db), LoginSessionDAL(db))


class SignupRequest(BaseModel):
    username: str = Field(..., max_length=50)
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest) -> dict[str, Any]:
    user = await _get_service().signup(body.username, body.email, body.password)
    return user.to_response()


@router.post("/login")
async def login(request: Request, body: LoginRequest) -> dict[str, Any]:
    """Authenticate and return ``{access_token, token_type, session_id, user}``.

    Raises:
        HTTPException 401: Invalid credentials.
        HTTPException 429: Too many attempts from this IP.
    """
    rate_limiter.check_rate_limit(request, "login")
    result = await _get_service().login(body.email, body.password)
    return {**result, "user": result["user"].to_response()}


@router.post("/logout")
async def logout(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    updated = await _get_service().logout(user["user_id"])
    return {"message": "Logged out", "user": updated.to_response()}


@router.get("/me")
async def me(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    current = await _get_service().get_user(user["user_id"])
    return current.to_response()
