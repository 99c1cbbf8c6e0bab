"""Unit tests for the PaymentService and per-method totals."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from coinbook.dal.payments_dal import PaymentDAL
from coinbook.errors import NotFoundError, ValidationError
from coinbook.services.payment_service import PaymentService, fold_totals


@pytest_asyncio.fixture
async def service(test_db) -> PaymentService:
    return PaymentService(PaymentDAL(test_db))


class TestFoldTotals:

    def test_cashin_adds_cashout_subtracts(self):
        totals = fold_totals([
            {"method": "cashapp", "tx_type": "cashin", "amount": 50},
            {"method": "cashapp", "tx_type": "cashout", "amount": 20},
            {"method": "paypal", "tx_type": "cashin", "amount": 10},
        ])
        assert totals == {"cashapp": 30.0, "paypal": 10.0, "chime": 0.0}

    def test_skips_bad_records(self):
        totals = fold_totals([
            {"method": "venmo", "tx_type": "cashin", "amount": 50},
            {"method": "chime", "tx_type": "cashin", "amount": "abc"},
            {"method": "chime", "tx_type": "cashin", "amount": 0.1},
            {"method": "chime", "tx_type": "cashin", "amount": 0.2},
        ])
        assert totals["chime"] == 0.3

    def test_balance_may_go_negative(self):
        totals = fold_totals([{"method": "paypal", "tx_type": "cashout", "amount": 15}])
        assert totals["paypal"] == -15.0

    def test_empty(self):
        assert fold_totals([]) == {"cashapp": 0.0, "paypal": 0.0, "chime": 0.0}


class TestRecord:

    @pytest.mark.asyncio
    async def test_totals_scenario(self, service: PaymentService):
        await service.record_cash_in(50, "cashapp")
        await service.record_cash_out(20, "CashApp", player_name="Bob")
        await service.record_cash_in("10", "paypal")
        assert await service.compute_totals() == {"cashapp": 30.0, "paypal": 10.0, "chime": 0.0}

    @pytest.mark.asyncio
    async def test_cash_in_zeroes_audit_totals(self, service: PaymentService):
        payment = await service.record_cash_in(25, "chime", note=" tip ", date="2025-03-01T22:00:00-05:00")
        assert payment.tx_type == "cashin"
        assert payment.total_paid == 0
        assert payment.total_cashout == 0
        assert payment.note == "tip"
        assert payment.date_string == "2025-03-02"
        assert len(payment.payment_id) == 32

    @pytest.mark.asyncio
    async def test_cash_out_keeps_audit_totals(self, service: PaymentService):
        payment = await service.record_cash_out(
            40, "paypal", player_name="Bob", total_paid=40, total_cashout=60
        )
        assert payment.total_paid == 40
        assert payment.total_cashout == 60

    @pytest.mark.asyncio
    async def test_venmo_rejected(self, service: PaymentService):
        with pytest.raises(ValidationError) as exc_info:
            await service.record_cash_in(10, "venmo")
        assert exc_info.value.code == "InvalidMethod"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "abc", None])
    async def test_amount_must_be_positive(self, service: PaymentService, amount):
        with pytest.raises(ValidationError) as exc_info:
            await service.record_cash_in(amount, "cashapp")
        assert exc_info.value.code == "InvalidAmount"

    @pytest.mark.asyncio
    async def test_cash_out_requires_player(self, service: PaymentService):
        with pytest.raises(ValidationError) as exc_info:
            await service.record_cash_out(10, "cashapp", player_name="  ")
        assert exc_info.value.code == "MissingPlayerName"
        assert await service.compute_totals() == {"cashapp": 0.0, "paypal": 0.0, "chime": 0.0}


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_partial_update(self, service: PaymentService):
        payment = await service.record_cash_in(25, "chime", note="first")
        updated = await service.update_payment(payment.payment_id, {"amount": "30"})
        assert updated.amount == 30
        assert updated.method == "chime"
        assert updated.note == "first"
        assert await service.compute_totals() == {"cashapp": 0.0, "paypal": 0.0, "chime": 30.0}

    @pytest.mark.asyncio
    async def test_switch_to_cashin_zeroes_totals(self, service: PaymentService):
        payment = await service.record_cash_out(10, "cashapp", player_name="Bob", total_paid=5)
        updated = await service.update_payment(payment.payment_id, {"tx_type": "cashin"})
        assert updated.tx_type == "cashin"
        assert updated.total_paid == 0

    @pytest.mark.asyncio
    async def test_switch_to_cashout_needs_player(self, service: PaymentService):
        payment = await service.record_cash_in(10, "cashapp")
        with pytest.raises(ValidationError) as exc_info:
            await service.update_payment(payment.payment_id, {"tx_type": "cashout"})
        assert exc_info.value.code == "MissingPlayerName"
        updated = await service.update_payment(
            payment.payment_id, {"tx_type": "cashout", "player_name": "Bob"}
        )
        assert updated.tx_type == "cashout"

    @pytest.mark.asyncio
    async def test_update_date_rederives_day(self, service: PaymentService):
        payment = await service.record_cash_in(10, "cashapp")
        updated = await service.update_payment(
            payment.payment_id, {"date": datetime(2024, 12, 31, 23, 30, tzinfo=timezone.utc)}
        )
        assert updated.date_string == "2024-12-31"

    @pytest.mark.asyncio
    async def test_update_invalid_values(self, service: PaymentService):
        payment = await service.record_cash_in(10, "cashapp")
        with pytest.raises(ValidationError):
            await service.update_payment(payment.payment_id, {"method": "venmo"})
        with pytest.raises(ValidationError) as exc_info:
            await service.update_payment(payment.payment_id, {"tx_type": "refund"})
        assert exc_info.value.code == "InvalidTxType"

    @pytest.mark.asyncio
    async def test_update_missing(self, service: PaymentService):
        with pytest.raises(NotFoundError) as exc_info:
            await service.update_payment("nope", {"amount": 1})
        assert exc_info.value.code == "PaymentNotFound"

    @pytest.mark.asyncio
    async def test_delete_recomputes_totals(self, service: PaymentService):
        keep = await service.record_cash_in(50, "cashapp")
        drop = await service.record_cash_out(20, "cashapp", player_name="Bob")
        removed = await service.delete_payment(drop.payment_id)
        assert removed.payment_id == drop.payment_id
        assert (await service.compute_totals())["cashapp"] == 50.0
        assert (await service.get_payment(keep.payment_id)).amount == 50
        with pytest.raises(NotFoundError):
            await service.delete_payment(drop.payment_id)


class TestListPayments:

    @pytest.mark.asyncio
    async def test_filters(self, service: PaymentService):
        await service.record_cash_in(10, "cashapp", date="2025-01-01")
        await service.record_cash_in(20, "paypal", date="2025-01-02")
        await service.record_cash_out(5, "paypal", player_name="Bob", date="2025-01-03")

        everything = await service.list_payments()
        assert [p.date_string for p in everything] == ["2025-01-03", "2025-01-02", "2025-01-01"]

        paypal = await service.list_payments(method="PayPal")
        assert {p.amount for p in paypal} == {20, 5}

        cashouts = await service.list_payments(tx_type="cashout")
        assert [p.player_name for p in cashouts] == ["Bob"]

        ranged = await service.list_payments(date_from="2025-01-02", date_to="2025-01-02")
        assert [p.amount for p in ranged] == [20]
