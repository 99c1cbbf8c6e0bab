"""Salary ledger route handlers.

Endpoints:
    GET    /api/salaries               -- List rows (filter by username / month).
    POST   /api/salaries               -- Upsert the row for (username, month).
    PUT    /api/salaries/{salary_id}   -- Partial update.
    DELETE /api/salaries/{salary_id}   -- Remove a row (admin).
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from coinbook.auth.dependencies import get_current_admin, get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.salaries_dal import SalaryDAL
from coinbook.services.salary_service import SalaryService

logger = logging.getLogger("coinbook.routes.salaries")

router = APIRouter(prefix="/salaries", tags=["Salaries"])


def _get_service() -> SalaryService:
    """Build a SalaryService wired to the current database."""
    return SalaryService(SalaryDAL(get_database()))


class UpsertSalaryRequest(BaseModel):
    username: Optional[str] = None
    month: Optional[str] = None
    total_salary: Any = None
    days_absent: Any = None
    remaining_salary: Any = None
    due_date: Any = None
    note: Optional[str] = None


class UpdateSalaryRequest(BaseModel):
    month: Optional[str] = None
    total_salary: Any = None
    days_absent: Any = None
    remaining_salary: Any = None
    due_date: Any = None
    note: Optional[str] = None


@router.get("", summary="List salary rows")
async def list_salaries(
    username: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    rows = await _get_service().list_salaries(username=username, month=month)
    return [r.to_response() for r in rows]


@router.post("", summary="Create or overwrite a salary row")
async def upsert_salary(
    body: UpsertSalaryRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    row = await _get_service().upsert_salary(
        username=body.username,
        month=body.month,
        total_salary=body.total_salary,
        days_absent=body.days_absent,
        remaining_salary=body.remaining_salary,
        due_date=body.due_date,
        note=body.note,
    )
    return row.to_response()


@router.put("/{salary_id}", summary="Update a salary row")
async def update_salary(
    body: UpdateSalaryRequest,
    salary_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    row = await _get_service().update_salary(
        salary_id, body.model_dump(exclude_unset=True)
    )
    return row.to_response()


@router.delete("/{salary_id}", summary="Remove a salary row")
async def delete_salary(
    salary_id: str = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    removed = await _get_service().delete_salary(salary_id)
    logger.info("Admin %s deleted salary %s", admin["username"], salary_id)
    return {"message": "Salary deleted", "salary": removed.to_response()}
