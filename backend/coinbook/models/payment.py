"""Payment domain model for Coinbook.

Stored in the ``payments`` collection. Each document is one cash-in or
cash-out movement on a payment method. ``payment_id`` is the externally
stable identifier; MongoDB's ``_id`` never leaves the DAL.
"""

from typing import Any, Optional

from pydantic import Field

from coinbook.models.common import (
    MongoModel,
    PaymentMethod,
    PyObjectId,
    TxType,
    UTCDateTime,
    utc_now,
)


class Payment(MongoModel):
    """A single cash movement.

    ``date_string`` is the UTC calendar day of ``date`` and is rewritten
    whenever ``date`` changes. Cash-in payments always carry zero
    ``total_paid`` / ``total_cashout``.
    """

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    payment_id: str
    amount: float = Field(gt=0)
    method: PaymentMethod
    tx_type: TxType = TxType.CASHIN
    player_name: str = ""
    total_paid: float = Field(default=0, ge=0)
    total_cashout: float = Field(default=0, ge=0)
    note: str = ""
    date: UTCDateTime
    date_string: str
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)

    def to_response(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"id", "payment_id"})
        return {"id": self.payment_id, **data}
