"""Payment ledger route handlers.

Every mutating endpoint answers ``{"payment": ..., "totals": ...}`` so the
dashboard can refresh its per-method balances in one round trip.

Endpoints:
    POST   /api/payments/cashin          -- Record a cash-in.
    POST   /api/payments/cashout         -- Record a cash-out.
    PUT    /api/payments/{payment_id}    -- Correct a payment.
    DELETE /api/payments/{payment_id}    -- Remove a payment (admin).
    GET    /api/payments                 -- Filtered listing.
    GET    /api/payments/totals          -- Per-method balances.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel

from coinbook.auth.dependencies import get_current_admin, get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.payments_dal import PaymentDAL
from coinbook.models.payment import Payment
from coinbook.services.payment_service import PaymentService

logger = logging.getLogger("coinbook.routes.payments")

router = APIRouter(prefix="/payments", tags=["Payments"])


def _get_service() -> PaymentService:
    """Build a PaymentService wired to the current database."""
    return PaymentService(PaymentDAL(get_database()))


async def _with_totals(service: PaymentService, payment: Payment) -> dict[str, Any]:
    return {
        "payment": payment.to_response(),
        "totals": await service.compute_totals(),
    }


class CashInRequest(BaseModel):
    amount: Any = None
    method: Any = None
    note: Optional[str] = None
    player_name: Optional[str] = None
    date: Any = None


class CashOutRequest(BaseModel):
    amount: Any = None
    method: Any = None
    player_name: Optional[str] = None
    total_paid: Any = None
    total_cashout: Any = None
    note: Optional[str] = None
    date: Any = None


class UpdatePaymentRequest(BaseModel):
    """Any subset of the payment's editable fields."""
    amount: Any = None
    method: Any = None
    tx_type: Any = None
    date: Any = None
    note: Optional[str] = None
    player_name: Optional[str] = None
    total_paid: Any = None
    total_cashout: Any = None


@router.post("/cashin", status_code=status.HTTP_201_CREATED, summary="Record a cash-in")
async def record_cash_in(
    body: CashInRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    payment = await service.record_cash_in(
        amount=body.amount,
        method=body.method,
        note=body.note,
        player_name=body.player_name,
        date=body.date,
    )
    return await _with_totals(service, payment)


@router.post("/cashout", status_code=status.HTTP_201_CREATED, summary="Record a cash-out")
async def record_cash_out(
    body: CashOutRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    payment = await service.record_cash_out(
        amount=body.amount,
        method=body.method,
        player_name=body.player_name,
        total_paid=body.total_paid,
        total_cashout=body.total_cashout,
        note=body.note,
        date=body.date,
    )
    return await _with_totals(service, payment)


@router.get("/totals", summary="Per-method balances")
async def get_totals(
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, float]:
    return await _get_service().compute_totals()


@router.get("", summary="List payments")
async def list_payments(
    method: Optional[str] = Query(None),
    tx_type: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: Optional[int] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    payments = await _get_service().list_payments(
        method=method,
        tx_type=tx_type,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return [p.to_response() for p in payments]


@router.put("/{payment_id}", summary="Correct a payment")
async def update_payment(
    body: UpdatePaymentRequest,
    payment_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    payment = await service.update_payment(
        payment_id, body.model_dump(exclude_unset=True)
    )
    logger.info("%s corrected payment %s", user["username"], payment_id)
    return await _with_totals(service, payment)


@router.delete("/{payment_id}", summary="Remove a payment")
async def delete_payment(
    payment_id: str = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    service = _get_service()
    removed = await service.delete_payment(payment_id)
    logger.info("Admin %s deleted payment %s", admin["username"], payment_id)
    return await _with_totals(service, removed)
