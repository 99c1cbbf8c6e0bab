"""Game entry domain model for Coinbook.

Stored in the ``game_entries`` collection. An entry is one player
transaction (freeplay, deposit or redeem) against a named game. Amounts
are fixed at creation; only the pending-balance fields change later, via
the clear-pending operation.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from coinbook.models.common import (
    EntryMethod,
    EntryType,
    MongoModel,
    PyObjectId,
    UTCDateTime,
    utc_now,
)


class GameEntry(MongoModel):
    """One player transaction.

    Our-tag redeem flow: ``total_paid`` / ``total_cashout`` /
    ``remaining_pay`` / ``is_pending`` track a staged payout.
    Player-tag deposit flow: ``reduction`` is what is still owed toward
    the tag's credit.
    """

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    type: EntryType
    method: Optional[EntryMethod] = None

    username: str
    created_by: str

    player_name: str = ""
    player_tag: str = ""
    game_name: str

    amount_base: float = Field(ge=0)
    bonus_rate: float = Field(default=0, ge=0)
    bonus_amount: float = Field(default=0, ge=0)
    amount_final: float = Field(ge=0)

    note: str = ""
    date: str

    total_paid: float = Field(default=0, ge=0)
    total_cashout: float = Field(default=0, ge=0)
    remaining_pay: float = Field(default=0, ge=0)
    is_pending: bool = False
    extra_money: float = Field(default=0, ge=0)
    reduction: float = Field(default=0, ge=0)

    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)

    @property
    def has_open_balance(self) -> bool:
        """True while the entry still shows on the pending list."""
        if self.type == EntryType.REDEEM:
            return self.remaining_pay > 0
        if self.type == EntryType.DEPOSIT:
            return bool(self.player_tag) and self.reduction > 0
        return False


class GameEntryCreate(BaseModel):
    """Raw input for recording an entry.

    Fields are deliberately loose (numbers may arrive as strings) and are
    validated by ``GameEntryService`` before anything is written.
    """

    type: Optional[str] = None
    method: Optional[str] = None
    username: Optional[str] = None
    created_by: Optional[str] = None

    player_name: Optional[str] = None
    player_tag: Optional[str] = None
    game_name: Optional[str] = None

    amount_base: Optional[Any] = None
    bonus_rate: Optional[Any] = None
    note: Optional[str] = None
    date: Optional[Any] = None

    total_paid: Optional[Any] = None
    total_cashout: Optional[Any] = None
    remaining_pay: Optional[Any] = None
    reduction: Optional[Any] = None
    is_pending: bool = False


class EntryFilter(BaseModel):
    """Query parameters accepted when listing entries."""

    username: Optional[str] = None
    player_name: Optional[str] = None
    player_tag: Optional[str] = None
    type: Optional[str] = None
    is_pending: Optional[bool] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    limit: Optional[int] = None
