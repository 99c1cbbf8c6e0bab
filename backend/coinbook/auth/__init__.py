"""Authentication and authorization utilities."""

from coinbook.auth.jwt import create_access_token, decode_token
from coinbook.auth.dependencies import get_current_admin, get_current_user

__all__ = [
    "create_access_token",
    "decode_token",
    "get_current_admin",
    "get_current_user",
]
