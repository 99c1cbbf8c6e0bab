"""Tests for the Coinbook ledger models."""

import ast
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

import coinbook.models
from coinbook.models import (
    EntryType,
    GameCounter,
    GameEntry,
    LoginSession,
    Payment,
    SalaryRecord,
    User,
    compute_total_coins,
)


class TestComputeTotalCoins:

    def test_spent_minus_earned_minus_recharged(self):
        assert compute_total_coins(500, 120, 80) == 300.0

    def test_may_be_negative(self):
        assert compute_total_coins(10, 50, 25) == -65.0

    def test_cent_exact(self):
        assert compute_total_coins(0.3, 0.1, 0.1) == 0.1

    def test_counter_recomputed_total(self):
        counter = GameCounter(
            game_id=1, name="Fire Kirin",
            coins_spent=100, coins_earned=30, coins_recharged=20,
        )
        assert counter.recomputed_total() == 50.0

    def test_counter_rejects_negative_counters(self):
        with pytest.raises(ValidationError):
            GameCounter(game_id=1, name="x", coins_spent=-1)


class TestGameEntry:

    def _entry(self, **overrides) -> GameEntry:
        fields = dict(
            type="redeem", method="cashapp", username="alice", created_by="alice",
            player_tag="@x", game_name="Orion", amount_base=50, amount_final=50,
            date="2025-01-01",
        )
        fields.update(overrides)
        return GameEntry(**fields)

    def test_enum_stored_as_plain_string(self):
        entry = self._entry()
        assert entry.to_mongo_dict()["type"] == "redeem"
        assert "_id" not in entry.to_mongo_dict()

    def test_redeem_open_while_remaining_pay(self):
        assert self._entry(remaining_pay=10).has_open_balance
        assert not self._entry(remaining_pay=0).has_open_balance

    def test_deposit_open_only_with_tag_and_reduction(self):
        assert self._entry(type="deposit", reduction=5).has_open_balance
        assert not self._entry(type="deposit", reduction=5, player_tag="", player_name="Bo").has_open_balance
        assert not self._entry(type=EntryType.FREEPLAY, method=None).has_open_balance

    def test_response_exposes_id(self):
        entry = self._entry(_id="65a1b2c3d4e5f6a7b8c9d0e1")
        assert entry.to_response()["id"] == "65a1b2c3d4e5f6a7b8c9d0e1"


class TestPayment:

    def test_response_uses_payment_id(self):
        payment = Payment(
            _id="65a1b2c3d4e5f6a7b8c9d0e1",
            payment_id="abc123",
            amount=25,
            method="paypal",
            date=datetime(2025, 3, 1, tzinfo=timezone.utc),
            date_string="2025-03-01",
        )
        data = payment.to_response()
        assert data["id"] == "abc123"
        assert "payment_id" not in data
        assert data["tx_type"] == "cashin"

    def test_venmo_is_not_a_payment_method(self):
        with pytest.raises(ValidationError):
            Payment(
                payment_id="p", amount=1, method="venmo",
                date=datetime.now(timezone.utc), date_string="2025-01-01",
            )

    def test_naive_datetimes_read_back_as_utc(self):
        payment = Payment(
            payment_id="p", amount=1, method="chime",
            date=datetime(2025, 1, 1, 12, 0), date_string="2025-01-01",
        )
        assert payment.date.tzinfo == timezone.utc


class TestSalaryRecord:

    def test_paid_salary_is_derived(self):
        row = SalaryRecord(username="bo", month="2025-02", total_salary=1000, remaining_salary=250)
        assert row.paid_salary == 750.0
        assert row.to_response()["paid_salary"] == 750.0
        assert "paid_salary" not in row.to_mongo_dict()

    def test_paid_salary_never_negative(self):
        row = SalaryRecord(username="bo", month="2025-02", total_salary=100, remaining_salary=300)
        assert row.paid_salary == 0.0

    def test_paid_salary_cent_exact(self):
        row = SalaryRecord(username="bo", month="2025-02", total_salary=0.3, remaining_salary=0.1)
        assert row.paid_salary == 0.2


def test_models_do_not_import_upper_layers():
    models_dir = Path(coinbook.models.__file__).parent
    for path in models_dir.glob("*.py"):
        tree = ast.parse(path.read_text())
        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom) and node.module:
                assert not node.module.startswith(
                    ("coinbook.services", "coinbook.dal", "coinbook.routes")
                ), f"{path.name} imports {node.module}"


class TestUserModels:

    def test_password_hash_not_in_response(self):
        user = User(username="alice", email="a@x.io", password_hash="secret")
        assert "password_hash" not in user.to_response()
        assert user.to_response()["role"] == "user"

    def test_session_duration(self):
        start = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
        session = LoginSession(user_id="u", username="alice", sign_in_at=start)
        assert session.duration_seconds is None
        session.sign_out_at = start + timedelta(minutes=90)
        assert session.duration_seconds == 5400
        assert session.to_response()["duration_seconds"] == 5400
