"""Unit tests for money and date normalization."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from coinbook.errors import ValidationError
from coinbook.services.normalize import (
    MAX_AMOUNT,
    clamp_limit,
    normalize_date_string,
    normalize_optional_date,
    parse_datetime,
    parse_money,
    parse_optional_money,
    round_money,
    sum_money,
    validate_month,
)


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

class TestParseMoney:

    @pytest.mark.parametrize("raw", [-5, 0, "-0.01", "0"])
    def test_rejects_negative_and_zero(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_money(raw)
        assert exc_info.value.code == "InvalidAmount"
        assert exc_info.value.status_code == 400

    def test_allow_zero(self):
        assert parse_money(0, allow_zero=True) == 0

    def test_negative_rejected_even_with_allow_zero(self):
        with pytest.raises(ValidationError):
            parse_money(-1, allow_zero=True)

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), "abc", "", None, True, [1]])
    def test_rejects_non_numeric(self, raw):
        with pytest.raises(ValidationError):
            parse_money(raw)

    def test_rounds_half_up(self):
        assert parse_money("10.005") == 10.01
        assert parse_money(2.675) == 2.68
        assert parse_money(Decimal("1.234")) == 1.23

    def test_numeric_string(self):
        assert parse_money(" 42.5 ") == 42.5

    @pytest.mark.parametrize("raw", [1e30, "1e30", "123456789012345678901234567", "1000000000000.01"])
    def test_rejects_oversized(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_money(raw)
        assert exc_info.value.code == "InvalidAmount"
        assert exc_info.value.status_code == 400

    def test_upper_bound_inclusive(self):
        assert parse_money(MAX_AMOUNT) == 1_000_000_000_000.0

    def test_custom_code(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_money(-1, code="InvalidDelta")
        assert exc_info.value.code == "InvalidDelta"


class TestOptionalMoney:

    def test_blank_uses_default(self):
        assert parse_optional_money(None) == 0.0
        assert parse_optional_money("  ", default=7.5) == 7.5

    def test_zero_allowed(self):
        assert parse_optional_money("0") == 0.0


class TestSums:

    def test_no_float_drift(self):
        assert sum_money([0.1] * 10) == 1.0
        assert sum_money([0.1, 0.2]) == 0.3

    def test_round_money(self):
        assert round_money(Decimal("0.125")) == 0.13


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

class TestNormalizeDateString:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2025-03-09", "2025-03-09"),
            ("2025-03-09T23:30:00Z", "2025-03-09"),
            ("2025-03-09T23:30:00-05:00", "2025-03-10"),
            ("2025-03-09T01:00:00+03:00", "2025-03-08"),
            (datetime(2025, 3, 9, 12, tzinfo=timezone.utc), "2025-03-09"),
            (datetime(2025, 3, 9, 12), "2025-03-09"),
            (date(2025, 3, 9), "2025-03-09"),
            (1741478400, "2025-03-09"),
            (1741478400000, "2025-03-09"),
        ],
    )
    def test_reduces_to_utc_day(self, raw, expected):
        assert normalize_date_string(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["2025-03-09", "2025-03-09T23:30:00-05:00", 1741478400000, date(2024, 2, 29)],
    )
    def test_idempotent(self, raw):
        once = normalize_date_string(raw)
        assert normalize_date_string(once) == once

    @pytest.mark.parametrize("raw", ["not a date", "2025-13-01", "2025-02-30", "", None, True])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            normalize_date_string(raw)
        assert exc_info.value.code == "InvalidDate"

    def test_optional_blank_is_none(self):
        assert normalize_optional_date(None) is None
        assert normalize_optional_date(" ") is None


class TestParseDatetime:

    def test_always_aware_utc(self):
        parsed = parse_datetime("2025-03-09T10:00:00+02:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 8

    def test_bare_day_is_midnight_utc(self):
        assert parse_datetime("2025-03-09") == datetime(2025, 3, 9, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        naive = datetime(2025, 1, 1, 5, 0)
        assert parse_datetime(naive) - datetime(2025, 1, 1, 5, tzinfo=timezone.utc) == timedelta(0)


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

class TestValidateMonth:

    def test_valid(self):
        assert validate_month(" 2025-07 ") == "2025-07"

    @pytest.mark.parametrize("raw", ["2025-13", "2025-7", "July", "", None])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            validate_month(raw)
        assert exc_info.value.code == "InvalidMonth"


class TestClampLimit:

    def test_default_when_missing(self):
        assert clamp_limit(None, 30, 200) == 30

    def test_capped(self):
        assert clamp_limit(1000, 30, 200) == 200

    def test_non_positive_falls_back(self):
        assert clamp_limit(0, 30, 200) == 30
        assert clamp_limit(-4, 30, 200) == 30

    def test_passthrough(self):
        assert clamp_limit("15", 30, 200) == 15
