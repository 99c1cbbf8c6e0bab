"""Salary ledger business logic."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError

from coinbook.dal.salaries_dal import SalaryDAL
from coinbook.errors import ConflictError, NotFoundError, ValidationError
from coinbook.models.salary import SalaryRecord
from coinbook.services.normalize import (
    clean_text,
    normalize_optional_date,
    parse_money,
    parse_optional_money,
    utc_now,
    validate_month,
)

logger = logging.getLogger("coinbook.services.salary")


def _remaining(raw: Any, default: float) -> float:
    """Remaining salary, clamped at 0. ``None`` means nothing paid yet."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationError(
            "remaining_salary must be a finite number", code="InvalidAmount"
        )
    if value.is_finite() and value < 0:
        return 0.0
    return parse_money(value, allow_zero=True, field="remaining_salary")


class SalaryService:
    """Service layer for the salary ledger."""

    def __init__(self, salary_dal: SalaryDAL) -> None:
        self._salary_dal = salary_dal

    async def upsert_salary(
        self,
        username: Any,
        month: Any,
        total_salary: Any,
        days_absent: Any = None,
        remaining_salary: Any = None,
        due_date: Any = None,
        note: Any = None,
    ) -> SalaryRecord:
        """Create or overwrite the salary row for ``(username, month)``."""
        name = clean_text(username)
        if not name:
            raise ValidationError("username is required", code="MissingUsername")
        period = validate_month(month)
        total = parse_money(total_salary, allow_zero=True, field="total_salary")

        fields = {
            "total_salary": total,
            "days_absent": parse_optional_money(days_absent, field="days_absent"),
            "remaining_salary": _remaining(remaining_salary, default=total),
            "due_date": normalize_optional_date(due_date) or "",
            "note": clean_text(note),
        }
        try:
            return await self._salary_dal.upsert(name, period, fields, utc_now())
        except DuplicateKeyError:
            logger.warning("Concurrent salary upsert for %s in %s", name, period)
            raise ConflictError(
                "Salary for this period was written concurrently, please retry",
                code="DuplicateSalary",
            )

    async def update_salary(self, salary_id: str, changes: dict[str, Any]) -> SalaryRecord:
        """Partial update; only the supplied keys are validated and written."""
        fields: dict[str, Any] = {}
        if "total_salary" in changes:
            fields["total_salary"] = parse_money(
                changes["total_salary"], allow_zero=True, field="total_salary"
            )
        if "days_absent" in changes:
            fields["days_absent"] = parse_optional_money(
                changes["days_absent"], field="days_absent"
            )
        if "remaining_salary" in changes:
            raw = changes["remaining_salary"]
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                total = fields.get("total_salary")
                if total is None:
                    current = await self._salary_dal.get_by_id(salary_id)
                    if current is None:
                        raise NotFoundError("Salary record not found", code="SalaryNotFound")
                    total = current.total_salary
                fields["remaining_salary"] = total
            else:
                fields["remaining_salary"] = _remaining(raw, default=0.0)
        if "due_date" in changes:
            fields["due_date"] = normalize_optional_date(changes["due_date"]) or ""
        if "note" in changes:
            fields["note"] = clean_text(changes["note"])
        if "month" in changes:
            fields["month"] = validate_month(changes["month"])

        fields["updated_at"] = utc_now()
        try:
            updated = await self._salary_dal.update_fields(salary_id, fields)
        except DuplicateKeyError:
            raise ConflictError(
                "A salary row for this period already exists", code="DuplicateSalary"
            )
        if updated is None:
            raise NotFoundError("Salary record not found", code="SalaryNotFound")
        logger.info("Updated salary %s (%s)", salary_id, ", ".join(sorted(fields)))
        return updated

    async def delete_salary(self, salary_id: str) -> SalaryRecord:
        removed = await self._salary_dal.delete(salary_id)
        if removed is None:
            raise NotFoundError("Salary record not found", code="SalaryNotFound")
        return removed

    async def list_salaries(
        self, username: Optional[str] = None, month: Optional[str] = None
    ) -> list[SalaryRecord]:
        return await self._salary_dal.list_salaries(
            username=clean_text(username) or None,
            month=validate_month(month) if month else None,
        )
