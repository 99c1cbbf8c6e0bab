"""Facebook lead capture and CSV export."""

import csv
import io
import logging
from typing import Any

from coinbook.dal.leads_dal import LeadDAL
from coinbook.errors import NotFoundError, ValidationError
from coinbook.models.common import ContactPreference
from coinbook.models.lead import FacebookLead
from coinbook.services.normalize import clean_text, utc_now

logger = logging.getLogger("coinbook.services.leads")

CSV_HEADER = [
    "Name",
    "Email",
    "Phone",
    "Contact Preference",
    "Facebook Link",
    "Source",
    "Created At",
]

_PREFERENCES = {p.value for p in ContactPreference}


def _lead_fields(data: dict[str, Any]) -> dict[str, Any]:
    name = clean_text(data.get("name"))
    email = clean_text(data.get("email")).lower()
    if not name or not email:
        raise ValidationError("Name and email are required", code="MissingLeadIdentity")

    preference = clean_text(data.get("contact_preference")).lower()
    if preference not in _PREFERENCES:
        raise ValidationError(
            "contact_preference must be whatsapp, telegram or empty",
            code="InvalidContactPreference",
        )
    return {
        "name": name,
        "email": email,
        "phone": clean_text(data.get("phone")),
        "contact_preference": preference,
        "facebook_link": clean_text(data.get("facebook_link")),
    }


class LeadService:
    """Service layer for Facebook leads."""

    def __init__(self, lead_dal: LeadDAL) -> None:
        self._lead_dal = lead_dal

    async def create_lead(self, data: dict[str, Any]) -> FacebookLead:
        fields = _lead_fields(data)
        source = clean_text(data.get("source")) or "facebook"
        return await self._lead_dal.create(FacebookLead(source=source, **fields))

    async def update_lead(self, lead_id: str, data: dict[str, Any]) -> FacebookLead:
        fields = _lead_fields(data)
        if "source" in data:
            fields["source"] = clean_text(data.get("source")) or "facebook"
        fields["updated_at"] = utc_now()
        updated = await self._lead_dal.update_fields(lead_id, fields)
        if updated is None:
            raise NotFoundError("Lead not found", code="LeadNotFound")
        return updated

    async def list_leads(self) -> list[FacebookLead]:
        return await self._lead_dal.list_all()

    async def export_csv(self) -> str:
        """All leads, newest first, as RFC-4180 CSV text with a header row."""
        leads = await self._lead_dal.list_all()
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\r\n")
        writer.writerow(CSV_HEADER)
        for lead in leads:
            writer.writerow([
                lead.name,
                lead.email,
                lead.phone,
                lead.contact_preference,
                lead.facebook_link,
                lead.source,
                lead.created_at.isoformat(),
            ])
        logger.info("Exported %d leads to CSV", len(leads))
        return buffer.getvalue()
