"""Salary ledger model for Coinbook.

One document per (username, month) in the ``salaries`` collection.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import Field

from coinbook.models.common import MongoModel, PyObjectId, UTCDateTime, utc_now


class SalaryRecord(MongoModel):
    """Monthly salary state for one staff member.

    Only ``remaining_salary`` is stored; ``paid_salary`` is derived on
    every read.
    """

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    username: str
    month: str
    total_salary: float = Field(ge=0)
    days_absent: float = Field(default=0, ge=0)
    remaining_salary: float = Field(default=0, ge=0)
    due_date: str = ""
    note: str = ""
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)

    @property
    def paid_salary(self) -> float:
        paid = Decimal(str(self.total_salary)) - Decimal(str(self.remaining_salary))
        return max(0.0, float(paid.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)))

    def to_response(self) -> dict[str, Any]:
        data = super().to_response()
        data["paid_salary"] = self.paid_salary
        return data
