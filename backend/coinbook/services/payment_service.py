"""Payment ledger business logic.

Cash-in / cash-out movements per payment method, and the per-method
running totals folded over every stored payment.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from coinbook.config import settings
from coinbook.dal.payments_dal import PaymentDAL
from coinbook.errors import NotFoundError, ValidationError
from coinbook.models.common import PaymentMethod, TxType
from coinbook.models.payment import Payment
from coinbook.services.normalize import (
    clamp_limit,
    clean_text,
    normalize_date_string,
    parse_datetime,
    parse_money,
    parse_optional_money,
    round_money,
    utc_now,
)

logger = logging.getLogger("coinbook.services.payments")

PAYMENT_METHODS = [m.value for m in PaymentMethod]
_TX_TYPES = {t.value for t in TxType}


def parse_payment_method(raw: Any) -> str:
    """Only cashapp / paypal / chime are cash pools; venmo is rejected."""
    method = clean_text(raw).lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"method must be one of {', '.join(PAYMENT_METHODS)}", code="InvalidMethod"
        )
    return method


def parse_tx_type(raw: Any) -> str:
    tx_type = clean_text(raw).lower()
    if tx_type not in _TX_TYPES:
        raise ValidationError("tx_type must be cashin or cashout", code="InvalidTxType")
    return tx_type


def fold_totals(movements: list[dict[str, Any]]) -> dict[str, float]:
    """Cash-in adds to the method's balance, cash-out subtracts.

    Records with an unknown method or a non-numeric amount are skipped.
    """
    totals = {method: Decimal("0") for method in PAYMENT_METHODS}
    for movement in movements:
        method = movement.get("method")
        if method not in totals:
            continue
        try:
            amount = Decimal(str(movement.get("amount", 0)))
        except ArithmeticError:
            continue
        if not amount.is_finite():
            continue
        if movement.get("tx_type") == TxType.CASHOUT:
            totals[method] -= amount
        else:
            totals[method] += amount
    return {method: round_money(value) for method, value in totals.items()}


class PaymentService:
    """Service layer for the payment ledger."""

    def __init__(self, payment_dal: PaymentDAL) -> None:
        self._payment_dal = payment_dal

    async def get_payment(self, payment_id: str) -> Payment:
        payment = await self._payment_dal.get_by_payment_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found", code="PaymentNotFound")
        return payment

    # ------------------------------------------------------------------
    # Record
    # ------------------------------------------------------------------

    async def record_cash_in(
        self,
        amount: Any,
        method: Any,
        note: Any = None,
        player_name: Any = None,
        date: Any = None,
    ) -> Payment:
        """Money entering the house pool. Audit totals are always 0."""
        return await self._record(
            tx_type=TxType.CASHIN.value,
            amount=parse_money(amount),
            method=parse_payment_method(method),
            player_name=clean_text(player_name),
            total_paid=0.0,
            total_cashout=0.0,
            note=clean_text(note),
            date=date,
        )

    async def record_cash_out(
        self,
        amount: Any,
        method: Any,
        player_name: Any,
        total_paid: Any = None,
        total_cashout: Any = None,
        note: Any = None,
        date: Any = None,
    ) -> Payment:
        """Money leaving the house pool to a named player."""
        name = clean_text(player_name)
        if not name:
            raise ValidationError(
                "player_name is required for cashout", code="MissingPlayerName"
            )
        return await self._record(
            tx_type=TxType.CASHOUT.value,
            amount=parse_money(amount),
            method=parse_payment_method(method),
            player_name=name,
            total_paid=parse_optional_money(total_paid, field="total_paid"),
            total_cashout=parse_optional_money(total_cashout, field="total_cashout"),
            note=clean_text(note),
            date=date,
        )

    async def _record(self, date: Any, **fields: Any) -> Payment:
        when = parse_datetime(date) if date not in (None, "") else utc_now()
        payment = Payment(
            payment_id=uuid.uuid4().hex,
            date=when,
            date_string=normalize_date_string(when),
            **fields,
        )
        return await self._payment_dal.create(payment)

    # ------------------------------------------------------------------
    # Correct
    # ------------------------------------------------------------------

    async def update_payment(self, payment_id: str, changes: dict[str, Any]) -> Payment:
        """Apply a partial correction.

        Only the keys present in ``changes`` are validated and written.
        A payment that ends up as cash-in has its audit totals zeroed; one
        that ends up as cash-out must still carry a player name.
        """
        current = await self.get_payment(payment_id)

        fields: dict[str, Any] = {}
        if "amount" in changes:
            fields["amount"] = parse_money(changes["amount"])
        if "method" in changes:
            fields["method"] = parse_payment_method(changes["method"])
        if "tx_type" in changes:
            fields["tx_type"] = parse_tx_type(changes["tx_type"])
        if "note" in changes:
            fields["note"] = clean_text(changes["note"])
        if "player_name" in changes:
            fields["player_name"] = clean_text(changes["player_name"])
        for key in ("total_paid", "total_cashout"):
            if key in changes:
                fields[key] = parse_optional_money(changes[key], field=key)
        if "date" in changes:
            when = parse_datetime(changes["date"])
            fields["date"] = when
            fields["date_string"] = normalize_date_string(when)

        tx_type = fields.get("tx_type", current.tx_type)
        if tx_type == TxType.CASHIN:
            fields["total_paid"] = 0.0
            fields["total_cashout"] = 0.0
        elif not fields.get("player_name", current.player_name):
            raise ValidationError(
                "player_name is required for cashout", code="MissingPlayerName"
            )

        fields["updated_at"] = utc_now()
        updated = await self._payment_dal.update_fields(payment_id, fields)
        if updated is None:
            raise NotFoundError("Payment not found", code="PaymentNotFound")
        return updated

    async def delete_payment(self, payment_id: str) -> Payment:
        removed = await self._payment_dal.delete(payment_id)
        if removed is None:
            raise NotFoundError("Payment not found", code="PaymentNotFound")
        return removed

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def compute_totals(self) -> dict[str, float]:
        """Per-method balance, recomputed from every stored payment."""
        movements = [m async for m in self._payment_dal.iter_movements()]
        totals = fold_totals(movements)
        logger.debug("Folded %d payments into totals %s", len(movements), totals)
        return totals

    async def list_payments(
        self,
        method: Optional[str] = None,
        tx_type: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
        limit: Any = None,
    ) -> list[Payment]:
        return await self._payment_dal.list_payments(
            limit=clamp_limit(limit, settings.ENTRY_PAGE_DEFAULT, settings.ENTRY_PAGE_MAX),
            method=parse_payment_method(method) if method else None,
            tx_type=parse_tx_type(tx_type) if tx_type else None,
            date_from=normalize_date_string(date_from) if date_from else None,
            date_to=normalize_date_string(date_to) if date_to else None,
        )
