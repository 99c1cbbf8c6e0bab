"""JWT helpers for staff authentication.

HS256 with the shared ``JWT_SECRET``. Tokens carry ``sub`` (user id),
``username``, ``role``, ``exp`` and ``iat``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from coinbook.config import settings

logger = logging.getLogger("coinbook.auth.jwt")

ALGORITHM = "HS256"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token.

    Args:
        data: Claims to embed. Must include at least ``sub``.
        expires_delta: Custom lifetime. Defaults to ``JWT_EXPIRE_HOURS``.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRE_HOURS))

    to_encode.update({"exp": expire, "iat": now})
    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=ALGORITHM)
    logger.debug("Created JWT for sub=%s, expires=%s", data.get("sub"), expire.isoformat())
    return token


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a token.

    Raises:
        jose.ExpiredSignatureError: The token has expired.
        jose.JWTError: Malformed token or bad signature.
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
