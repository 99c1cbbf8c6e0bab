"""Staff account and login session models for Coinbook."""

from typing import Any, Optional

from pydantic import Field

from coinbook.models.common import MongoModel, PyObjectId, UTCDateTime, UserRole, utc_now


class User(MongoModel):
    """A staff account stored in the ``users`` collection.

    The ``total_*`` fields are admin-maintained overrides shown on the
    staff table, not derived from the ledgers.
    """

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    username: str
    email: str
    password_hash: str
    role: UserRole = UserRole.USER
    last_sign_in_at: Optional[UTCDateTime] = None
    last_sign_out_at: Optional[UTCDateTime] = None
    total_payments: float = Field(default=0, ge=0)
    total_freeplay: float = Field(default=0, ge=0)
    total_deposit: float = Field(default=0, ge=0)
    total_redeem: float = Field(default=0, ge=0)
    created_at: UTCDateTime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"password_hash"})


class LoginSession(MongoModel):
    """One sign-in / sign-out pair in the ``login_sessions`` collection."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    user_id: str
    username: str
    sign_in_at: UTCDateTime
    sign_out_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime = Field(default_factory=utc_now)

    @property
    def duration_seconds(self) -> Optional[int]:
        if self.sign_out_at is None:
            return None
        return int((self.sign_out_at - self.sign_in_at).total_seconds())

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["duration_seconds"] = self.duration_seconds
        return data

