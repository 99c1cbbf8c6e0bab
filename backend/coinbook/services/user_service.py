"""Staff account, authentication and login-session business logic.

Passwords are hashed with werkzeug's PBKDF2 helpers. The configured admin
account is created or repaired by ``ensure_admin_user``, which the
application lifespan calls exactly once per process start.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError
from werkzeug.security import check_password_hash, generate_password_hash

from coinbook.auth.jwt import create_access_token
from coinbook.config import settings
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.errors import ConflictError, NotFoundError, ValidationError
from coinbook.models.common import UserRole
from coinbook.models.user import LoginSession, User
from coinbook.services.normalize import clamp_limit, clean_text, parse_optional_money, utc_now

logger = logging.getLogger("coinbook.services.users")

MIN_PASSWORD_LENGTH = 6
USER_TOTAL_FIELDS = ("total_payments", "total_freeplay", "total_deposit", "total_redeem")


def normalize_email(raw: Any) -> str:
    email = clean_text(raw).lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("A valid email is required", code="InvalidEmail")
    return email


def _check_password(raw: Any) -> str:
    password = raw if isinstance(raw, str) else ""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            code="InvalidPassword",
        )
    return password


class UserService:
    """Service layer for staff accounts and their login sessions."""

    def __init__(self, user_dal: UserDAL, session_dal: LoginSessionDAL) -> None:
        self._user_dal = user_dal
        self._session_dal = session_dal

    async def get_user(self, user_id: str) -> User:
        user = await self._user_dal.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", code="UserNotFound")
        return user

    # ------------------------------------------------------------------
    # Sign up / in / out
    # ------------------------------------------------------------------

    async def signup(self, username: Any, email: Any, password: Any) -> User:
        """Create a regular staff account.

        Raises:
            ValidationError: Missing username, malformed email or short password.
            ConflictError: ``DuplicateEmail``.
        """
        name = clean_text(username)
        if not name:
            raise ValidationError("username is required", code="MissingUsername")
        clean_email = normalize_email(email)
        secret = _check_password(password)

        if await self._user_dal.get_by_email(clean_email) is not None:
            raise ConflictError("Email is already registered", code="DuplicateEmail")

        user = User(
            username=name,
            email=clean_email,
            password_hash=generate_password_hash(secret),
        )
        try:
            return await self._user_dal.create(user)
        except DuplicateKeyError:
            raise ConflictError("Email is already registered", code="DuplicateEmail")

    async def login(self, email: Any, password: Any) -> dict[str, Any]:
        """Verify credentials, open a login session and issue a JWT.

        Returns:
            ``{"access_token", "token_type", "session_id", "user"}``.

        Raises:
            HTTPException 401: Unknown email or wrong password (never says which).
        """
        user = await self._user_dal.get_by_email(clean_text(email).lower())
        if user is None or not check_password_hash(
            user.password_hash, password if isinstance(password, str) else ""
        ):
            logger.warning("Failed login attempt")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )

        now = utc_now()
        session = await self.start_session(user, now)
        user = await self._user_dal.update_fields(user.id, {"last_sign_in_at": now}) or user

        token = create_access_token(
            data={"sub": user.id, "username": user.username, "role": user.role}
        )
        logger.info("Login successful for user=%s", user.username)
        return {
            "access_token": token,
            "token_type": "bearer",
            "session_id": session.id,
            "user": user,
        }

    async def logout(self, user_id: str) -> User:
        """Close the user's latest open session and stamp ``last_sign_out_at``."""
        user = await self.get_user(user_id)
        now = utc_now()
        session = await self._session_dal.latest_open(user_id)
        if session is not None:
            await self._session_dal.close(session.id, now)
        updated = await self._user_dal.update_fields(user_id, {"last_sign_out_at": now})
        logger.info("Logout for user=%s", user.username)
        return updated or user

    # ------------------------------------------------------------------
    # Admin bootstrap
    # ------------------------------------------------------------------

    async def ensure_admin_user(self) -> User:
        """Create the configured admin, or repair it to match configuration.

        Safe to run repeatedly: a second call with unchanged settings
        writes nothing.
        """
        email = normalize_email(settings.ADMIN_EMAIL)
        user = await self._user_dal.get_by_email(email)

        if user is None:
            user = await self._user_dal.create(
                User(
                    username=settings.ADMIN_USERNAME,
                    email=email,
                    password_hash=generate_password_hash(settings.ADMIN_PASSWORD),
                    role=UserRole.ADMIN,
                )
            )
            logger.info("Admin user created: %s", email)
            return user

        fields: dict[str, Any] = {}
        if not user.username:
            fields["username"] = settings.ADMIN_USERNAME
        if user.role != UserRole.ADMIN:
            fields["role"] = UserRole.ADMIN.value
        if not check_password_hash(user.password_hash, settings.ADMIN_PASSWORD):
            fields["password_hash"] = generate_password_hash(settings.ADMIN_PASSWORD)

        if not fields:
            logger.info("Admin user already up-to-date: %s", email)
            return user

        updated = await self._user_dal.update_fields(user.id, fields)
        logger.info("Admin user repaired: %s (%s)", email, ", ".join(sorted(fields)))
        return updated or user

    # ------------------------------------------------------------------
    # Admin user management
    # ------------------------------------------------------------------

    async def list_users(self) -> list[User]:
        return await self._user_dal.list_all()

    async def set_totals(self, user_id: str, totals: dict[str, Any]) -> User:
        """Overwrite the admin-maintained totals shown on the staff table."""
        fields = {
            key: parse_optional_money(totals.get(key), field=key)
            for key in USER_TOTAL_FIELDS
            if key in totals
        }
        if not fields:
            return await self.get_user(user_id)
        updated = await self._user_dal.update_fields(user_id, fields)
        if updated is None:
            raise NotFoundError("User not found", code="UserNotFound")
        logger.info("Updated totals for user %s", user_id)
        return updated

    async def reset_password(self, user_id: str, new_password: Any) -> User:
        secret = _check_password(new_password)
        updated = await self._user_dal.update_fields(
            user_id, {"password_hash": generate_password_hash(secret)}
        )
        if updated is None:
            raise NotFoundError("User not found", code="UserNotFound")
        logger.info("Password reset for user %s", user_id)
        return updated

    async def delete_user(self, user_id: str) -> User:
        """Delete a staff account. Admin accounts are protected.

        Raises:
            NotFoundError: ``UserNotFound``.
            HTTPException 403: The target is an admin.
        """
        user = await self.get_user(user_id)
        if user.is_admin or user.username.lower() == "admin":
            logger.warning("Attempt to delete admin user %s blocked", user_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin user cannot be deleted",
            )
        if not await self._user_dal.delete(user_id):
            raise NotFoundError("User not found", code="UserNotFound")
        return user

    # ------------------------------------------------------------------
    # Login sessions
    # ------------------------------------------------------------------

    async def start_session(
        self, user: User, at: Optional[datetime] = None
    ) -> LoginSession:
        return await self._session_dal.create(
            LoginSession(user_id=user.id, username=user.username, sign_in_at=at or utc_now())
        )

    async def end_session(self, session_id: str) -> LoginSession:
        """Close a session. Closing an already-closed session is a no-op."""
        session = await self._session_dal.close(session_id, utc_now())
        if session is None:
            raise NotFoundError("Session not found", code="SessionNotFound")
        return session

    async def list_sessions(
        self, username: Optional[str] = None, limit: Any = None
    ) -> list[LoginSession]:
        return await self._session_dal.list_recent(
            limit=clamp_limit(limit, 100, settings.ENTRY_PAGE_MAX),
            username=clean_text(username) or None,
        )
