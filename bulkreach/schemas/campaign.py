"""
Pydantic schemas for campaign creation and retrieval.

CampaignDraft is the validated input of the funding protocol. Its field
rules match the campaign document the dashboard has always stored:
name 3-100 characters, message up to 1000, button labels up to 20, a
phone-looking button number, a URL-looking link and a "+<digits>" country
code.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from bulkreach.models.campaign import Campaign, MediaType, MobileNumberEntryType
from bulkreach.schemas.common import CamelModel

PHONE_PATTERN = r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"
URL_PATTERN = r"^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w.-]*)*/?$"
COUNTRY_CODE_PATTERN = r"^\+\d{1,4}$"


class PhoneButton(CamelModel):
    text: str = Field(min_length=1, max_length=20)
    number: str = Field(pattern=PHONE_PATTERN)


class LinkButton(CamelModel):
    text: str = Field(min_length=1, max_length=20)
    url: str = Field(pattern=URL_PATTERN)


class MediaInfo(CamelModel):
    type: MediaType
    url: str
    filename: str
    size: int
    mime_type: str


class CampaignDraft(BaseModel):
    """A campaign request that has passed validation, before funding."""
    campaign_name: str = Field(min_length=3, max_length=100)
    message: str = Field(min_length=1, max_length=1000)
    country_code: str = Field(pattern=COUNTRY_CODE_PATTERN)
    recipients: list[str] = Field(min_length=1)
    mobile_number_entry_type: MobileNumberEntryType = MobileNumberEntryType.MANUAL
    phone_button: PhoneButton | None = None
    link_button: LinkButton | None = None


class CampaignResponse(CamelModel):
    """Public representation of a stored campaign."""
    id: uuid.UUID
    created_by: uuid.UUID
    campaign_name: str
    message: str
    phone_button: PhoneButton | None = None
    link_button: LinkButton | None = None
    media: MediaInfo | None = None
    mobile_number_entry_type: str
    mobile_numbers: list[str]
    country_code: str
    requested_number_count: int
    number_count: int
    status: str
    created_at: datetime

    @classmethod
    def from_campaign(cls, campaign: Campaign) -> "CampaignResponse":
        return cls(
            id=campaign.id,
            created_by=campaign.created_by,
            campaign_name=campaign.campaign_name,
            message=campaign.message,
            phone_button=phone_button_of(campaign),
            link_button=link_button_of(campaign),
            media=media_of(campaign),
            mobile_number_entry_type=campaign.mobile_number_entry_type,
            mobile_numbers=campaign.mobile_numbers,
            country_code=campaign.country_code,
            requested_number_count=campaign.requested_number_count,
            number_count=campaign.number_count,
            status=campaign.status,
            created_at=campaign.created_at,
        )


class CampaignFundingData(CamelModel):
    """`data` payload of POST /campaigns."""
    campaign_id: uuid.UUID
    campaign_name: str
    message: str
    phone_button: PhoneButton | None = None
    link_button: LinkButton | None = None
    media: MediaInfo | None = None
    mobile_number_entry_type: str
    requested_number_count: int
    actual_number_count: int
    excluded_number_count: int
    points_deducted: int
    remaining_balance: int
    country_code: str
    created_at: datetime
    transaction_id: uuid.UUID


class CampaignFundingResponse(CamelModel):
    """Response envelope for POST /campaigns (full or partial funding)."""
    success: bool = True
    message: str
    data: CampaignFundingData


def phone_button_of(campaign: Campaign) -> PhoneButton | None:
    if campaign.phone_button_text is None:
        return None
    return PhoneButton(text=campaign.phone_button_text, number=campaign.phone_button_number)


def link_button_of(campaign: Campaign) -> LinkButton | None:
    if campaign.link_button_text is None:
        return None
    return LinkButton(text=campaign.link_button_text, url=campaign.link_button_url)


def media_of(campaign: Campaign) -> MediaInfo | None:
    if campaign.media_url is None:
        return None
    return MediaInfo(
        type=campaign.media_type,
        url=campaign.media_url,
        filename=campaign.media_filename,
        size=campaign.media_size,
        mime_type=campaign.media_mime_type,
    )
