"""
Campaigns router — create (fund) and read campaigns.

Endpoints (require JWT):
  POST /campaigns                 — Create and pay for a campaign (multipart form)
  GET  /campaigns                 — List own campaigns
  GET  /campaigns/{campaign_id}   — Get one own campaign

POST /campaigns is a multipart form so a media file can travel with the
campaign. Fields use the dashboard's camelCase names; `mobileNumbers` may
be repeated, and each value may hold several comma-separated numbers.
"""

import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.dependencies import Principal, get_current_principal
from bulkreach.schemas.campaign import (
    CampaignFundingData,
    CampaignFundingResponse,
    CampaignResponse,
    link_button_of,
    media_of,
    phone_button_of,
)
from bulkreach.services import funding_service, media_service

router = APIRouter()


@router.post(
    "",
    response_model=CampaignFundingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create and fund a campaign",
)
async def create_campaign(
    campaign_name: str | None = Form(None, alias="campaignName"),
    message: str | None = Form(None),
    country_code: str | None = Form(None, alias="countryCode"),
    mobile_numbers: list[str] | None = Form(None, alias="mobileNumbers"),
    mobile_number_entry_type: str | None = Form(None, alias="mobileNumberEntryType"),
    phone_button_text: str | None = Form(None, alias="phoneButtonText"),
    phone_button_number: str | None = Form(None, alias="phoneButtonNumber"),
    link_button_text: str | None = Form(None, alias="linkButtonText"),
    link_button_url: str | None = Form(None, alias="linkButtonUrl"),
    file: UploadFile | None = File(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a campaign paid for by the caller, one point per recipient.

    - Enough points: every number is kept.
    - Some points: the first N numbers are kept (N = balance) and the
      response reports how many were excluded.
    - No points: 400, nothing is created.
    - Admins are never charged.

    The optional `file` (image, video or PDF, max 5MB) is attached to the
    campaign.
    """
    draft = funding_service.build_draft(
        campaign_name=campaign_name,
        message=message,
        country_code=country_code,
        mobile_numbers=mobile_numbers,
        mobile_number_entry_type=mobile_number_entry_type,
        phone_button_text=phone_button_text,
        phone_button_number=phone_button_number,
        link_button_text=link_button_text,
        link_button_url=link_button_url,
    )

    media = None
    if file is not None and file.filename:
        media = await media_service.stage_upload(file)

    result = await funding_service.fund_campaign(
        db=db,
        payer_account_id=principal.account_id,
        draft=draft,
        media=media,
    )

    await funding_service.commit_funding(db, media)

    campaign = result.campaign
    return CampaignFundingResponse(
        message=result.message,
        data=CampaignFundingData(
            campaign_id=campaign.id,
            campaign_name=campaign.campaign_name,
            message=campaign.message,
            phone_button=phone_button_of(campaign),
            link_button=link_button_of(campaign),
            media=media_of(campaign),
            mobile_number_entry_type=campaign.mobile_number_entry_type,
            requested_number_count=result.requested_count,
            actual_number_count=result.funded_count,
            excluded_number_count=result.excluded_count,
            points_deducted=result.points_deducted,
            remaining_balance=result.remaining_balance,
            country_code=campaign.country_code,
            created_at=campaign.created_at,
            transaction_id=result.transaction_id,
        ),
    )


@router.get(
    "",
    response_model=list[CampaignResponse],
    summary="List your campaigns",
)
async def list_campaigns(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the campaigns the caller paid for, newest first."""
    campaigns = await funding_service.list_campaigns(
        db, principal.account_id, limit=limit, offset=offset
    )
    return [CampaignResponse.from_campaign(c) for c in campaigns]


@router.get(
    "/{campaign_id}",
    response_model=CampaignResponse,
    summary="Get a campaign",
)
async def get_campaign(
    campaign_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    campaign = await funding_service.get_campaign(db, campaign_id, principal.account_id)
    return CampaignResponse.from_campaign(campaign)
