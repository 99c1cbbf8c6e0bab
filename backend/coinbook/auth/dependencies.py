"""FastAPI dependencies for authentication and authorization.

Use with ``Depends()`` in route signatures. Both return the caller's
token context ``{"user_id", "username", "role"}``.
"""

import logging
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from jose import ExpiredSignatureError, JWTError

from coinbook.auth.jwt import decode_token

logger = logging.getLogger("coinbook.auth.dependencies")


async def get_current_user(
    authorization: str | None = Header(None),
) -> dict[str, Any]:
    """Validate the bearer JWT from the Authorization header.

    Raises:
        HTTPException 401: Missing, invalid or expired token.
    """
    if authorization is None or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )

    token = authorization[len("Bearer "):]

    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        logger.warning("Expired JWT presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except JWTError:
        logger.warning("Invalid JWT presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return {
        "user_id": payload["sub"],
        "username": payload.get("username") or "",
        "role": payload.get("role", "user"),
    }


async def get_current_admin(
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Like ``get_current_user`` but requires role admin.

    Raises:
        HTTPException 403: Authenticated but not an admin.
    """
    if user["role"] != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user
