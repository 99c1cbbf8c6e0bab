"""Common enums, shared types, and utilities for Coinbook models."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, PlainSerializer


def _validate_object_id(value: Any) -> str:
    """Validate and convert ObjectId or string to string representation."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str):
        return value
    raise ValueError(f"Invalid ObjectId value: {value}")


def _ensure_utc(value: datetime) -> datetime:
    """MongoDB hands back naive datetimes; they are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Annotated type for MongoDB ObjectId fields.
# Accepts ObjectId or string on input, always serializes as string.
PyObjectId = Annotated[
    str,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda v: str(v), return_type=str),
]

UTCDateTime = Annotated[datetime, AfterValidator(_ensure_utc)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntryType(StrEnum):
    """Kind of player transaction recorded against a game."""
    FREEPLAY = "freeplay"
    DEPOSIT = "deposit"
    REDEEM = "redeem"


class EntryMethod(StrEnum):
    """Payment rails accepted on game entries."""
    CASHAPP = "cashapp"
    PAYPAL = "paypal"
    CHIME = "chime"
    VENMO = "venmo"


class PaymentMethod(StrEnum):
    """Cash pools tracked by the payment ledger (venmo is not one)."""
    CASHAPP = "cashapp"
    PAYPAL = "paypal"
    CHIME = "chime"


class TxType(StrEnum):
    """Direction of a cash movement."""
    CASHIN = "cashin"
    CASHOUT = "cashout"


class UserRole(StrEnum):
    """Staff account roles."""
    USER = "user"
    ADMIN = "admin"


class ContactPreference(StrEnum):
    """How a captured lead prefers to be contacted."""
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    NONE = ""


class MongoModel(BaseModel):
    """Base for documents stored in MongoDB.

    ``id`` maps to ``_id``; it is dropped on insert when unset so MongoDB
    generates one.
    """

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "use_enum_values": True,
    }

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB-insertable dict, excluding None id."""
        data = self.model_dump(by_alias=True, mode="python")
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    def to_response(self) -> dict[str, Any]:
        """JSON-ready dict for API responses (``_id`` exposed as ``id``)."""
        return self.model_dump(mode="json")
