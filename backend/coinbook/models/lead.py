"""Facebook lead capture model for Coinbook."""

from typing import Optional

from pydantic import Field

from coinbook.models.common import (
    ContactPreference,
    MongoModel,
    PyObjectId,
    UTCDateTime,
    utc_now,
)


class FacebookLead(MongoModel):
    """A prospective player captured from a Facebook campaign."""

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    email: str
    phone: str = ""
    contact_preference: ContactPreference = ContactPreference.NONE
    facebook_link: str = ""
    source: str = "facebook"
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)
