"""Facebook lead capture route handlers.

Endpoints:
    POST /api/facebook-leads             -- Capture a lead.
    GET  /api/facebook-leads             -- List leads, newest first.
    GET  /api/facebook-leads/export      -- CSV download (admin).
    PUT  /api/facebook-leads/{lead_id}   -- Edit a lead.
"""

import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Response, status
from pydantic import BaseModel

from coinbook.auth.dependencies import get_current_admin, get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.leads_dal import LeadDAL
from coinbook.services.lead_service import LeadService

router = APIRouter(prefix="/facebook-leads", tags=["Facebook Leads"])


def _get_service() -> LeadService:
    """Build a LeadService wired to the current database."""
    return LeadService(LeadDAL(get_database()))


class LeadRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    contact_preference: Optional[str] = None
    facebook_link: Optional[str] = None
    source: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    body: LeadRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    lead = await _get_service().create_lead(body.model_dump())
    return lead.to_response()


@router.get("")
async def list_leads(
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    leads = await _get_service().list_leads()
    return [lead.to_response() for lead in leads]


@router.get("/export")
async def export_leads(
    admin: dict[str, Any] = Depends(get_current_admin),
) -> Response:
    content = await _get_service().export_csv()
    filename = f"facebook_leads_{int(time.time() * 1000)}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put("/{lead_id}")
async def update_lead(
    body: LeadRequest,
    lead_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    lead = await _get_service().update_lead(lead_id, body.model_dump(exclude_unset=True))
    return lead.to_response()
