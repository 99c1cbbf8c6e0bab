"""Game coin counter and activity models for Coinbook.

One ``GameCounter`` document per game in the ``game_counters`` collection,
plus one ``Activity`` document per non-empty coin move in ``activities``.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from coinbook.models.common import MongoModel, PyObjectId, UTCDateTime, utc_now


def compute_total_coins(
    coins_spent: float,
    coins_earned: float,
    coins_recharged: float,
) -> float:
    """House net coins: redeemed coins add, freeplay and recharges subtract.

    ``total_coins = coins_spent - coins_earned - coins_recharged``. The
    result may be negative; it is never passed through ``abs()``.
    """
    total = (
        Decimal(str(coins_spent))
        - Decimal(str(coins_earned))
        - Decimal(str(coins_recharged))
    )
    return float(total.quantize(Decimal("0.01")))


class GameCounter(MongoModel):
    """Cumulative coin counters for a single game.

    ``version`` is bumped on every write and used as the compare-and-swap
    token for concurrent moves against the same game.
    """

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    game_id: int
    name: str
    coins_earned: float = Field(default=0, ge=0)
    coins_spent: float = Field(default=0, ge=0)
    coins_recharged: float = Field(default=0, ge=0)
    total_coins: float = 0
    last_recharge_date: Optional[str] = None
    version: int = 0
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)

    def recomputed_total(self) -> float:
        return compute_total_coins(
            self.coins_spent, self.coins_earned, self.coins_recharged
        )


class Activity(MongoModel):
    """A single coin move attributed to an operator, used for dashboards."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    username: str
    game_id: int
    game_name: str
    freeplay: float = 0
    redeem: float = 0
    deposit: float = 0
    date: str
    created_at: UTCDateTime = Field(default_factory=utc_now)
