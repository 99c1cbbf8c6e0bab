"""Pure functions for money and date normalization.

No database access, no async. Every ledger write passes its amounts
through ``parse_money`` / ``round_money`` so stored values are always
cent-exact, and every calendar day is derived in UTC.
"""

import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from coinbook.errors import ValidationError

_CENT = Decimal("0.01")
# Largest accepted amount; keeps every stored float cent-exact.
MAX_AMOUNT = Decimal("1000000000000")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

# Numeric timestamps above this are treated as epoch milliseconds.
_EPOCH_MS_THRESHOLD = 100_000_000_000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> str:
    """Today's calendar day in UTC as ``YYYY-MM-DD``."""
    return utc_now().strftime("%Y-%m-%d")


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

def _to_decimal(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None
    return None


def round_money(value: Any) -> float:
    """Round a numeric value to 2 places, half-up."""
    dec = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(dec.quantize(_CENT, rounding=ROUND_HALF_UP))


def sum_money(values: Iterable[Any]) -> float:
    """Add amounts in Decimal space and round once at the end."""
    total = Decimal("0")
    for value in values:
        total += Decimal(str(value))
    return round_money(total)


def parse_money(
    raw: Any,
    allow_zero: bool = False,
    field: str = "amount",
    code: str = "InvalidAmount",
) -> float:
    """Parse and validate a monetary input.

    Args:
        raw: An int, float, Decimal or numeric string.
        allow_zero: Accept exactly 0. Negative values are always rejected.
        field: Field name used in the error message.
        code: Error code raised on failure.

    Returns:
        The amount rounded to 2 decimal places (half-up).

    Raises:
        ValidationError: Non-numeric, non-finite, negative, above
            ``MAX_AMOUNT``, or zero without ``allow_zero``.
    """
    dec = _to_decimal(raw)
    if dec is None or not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number", code=code)
    if dec < 0:
        raise ValidationError(f"{field} must be >= 0", code=code)
    if dec == 0 and not allow_zero:
        raise ValidationError(f"{field} must be > 0", code=code)
    if dec > MAX_AMOUNT:
        raise ValidationError(f"{field} must be <= {MAX_AMOUNT}", code=code)
    try:
        return round_money(dec)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a finite number", code=code)


def parse_optional_money(
    raw: Any,
    default: float = 0.0,
    field: str = "amount",
    code: str = "InvalidAmount",
) -> float:
    """Like ``parse_money(allow_zero=True)`` but ``None``/blank yields ``default``."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    return parse_money(raw, allow_zero=True, field=field, code=code)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def _invalid_date(raw: Any) -> ValidationError:
    return ValidationError(f"Invalid date: {raw!r}", code="InvalidDate")


def parse_datetime(raw: Any) -> datetime:
    """Parse a date-like input into a timezone-aware UTC datetime.

    Accepts ``datetime`` (naive values are taken as UTC), ``date``,
    epoch seconds or milliseconds, bare ``YYYY-MM-DD`` strings (midnight
    UTC) and ISO-8601 timestamps with or without an offset.

    Raises:
        ValidationError: ``InvalidDate`` for anything unparseable.
    """
    if raw is None or isinstance(raw, bool):
        raise _invalid_date(raw)

    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            return raw.replace(tzinfo=timezone.utc)
        return raw.astimezone(timezone.utc)

    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)

    if isinstance(raw, (int, float)):
        seconds = float(raw)
        if abs(seconds) >= _EPOCH_MS_THRESHOLD:
            seconds = seconds / 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise _invalid_date(raw)

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise _invalid_date(raw)
        if _DAY_RE.match(text):
            try:
                day = date.fromisoformat(text)
            except ValueError:
                raise _invalid_date(raw)
            return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise _invalid_date(raw)
        return parse_datetime(parsed)

    raise _invalid_date(raw)


def normalize_date_string(raw: Any) -> str:
    """Reduce any accepted date input to a UTC calendar day ``YYYY-MM-DD``.

    Idempotent: a value already in ``YYYY-MM-DD`` form maps to itself.
    """
    return parse_datetime(raw).strftime("%Y-%m-%d")


def normalize_optional_date(raw: Any) -> str | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return normalize_date_string(raw)


def validate_month(raw: Any) -> str:
    """Validate a ``YYYY-MM`` salary period key."""
    text = str(raw or "").strip()
    if not _MONTH_RE.match(text):
        raise ValidationError("month is required (YYYY-MM)", code="InvalidMonth")
    return text


def clean_text(raw: Any) -> str:
    """Trim free-text input; ``None`` collapses to the empty string."""
    if raw is None:
        return ""
    return str(raw).strip()


def clamp_limit(raw: Any, default: int, maximum: int) -> int:
    """Page size: ``default`` when absent or unusable, never above ``maximum``."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value <= 0:
        return default
    return min(value, maximum)
