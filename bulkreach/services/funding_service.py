"""
Funding service — turn a campaign request into a paid-for campaign.

Every recipient costs one point. The payer's funding policy decides how
many of the requested recipients can be paid for:

  - Metered payers (resellers, users) fund at most their balance. When
    the balance is short, the campaign is created for the first N
    recipients in request order and the rest are excluded (partial
    funding). A payer with no points at all is refused outright.
  - Unmetered payers (admins) fund every recipient and keep their balance.

A successful funding writes, in one unit of work:
  - the Campaign holding the funded recipients
  - the payer's new balance and campaign counter
  - one "debit" journal entry whose amount is the funded count

All three commit together or not at all. Database failures while writing
them surface as PersistenceFailureError, which makes get_db roll the
whole request back; fund_campaign also rolls the session back itself
before raising, so a failed funding leaves nothing behind even outside a
request. Refusals happen before anything is written, and no
failed journal entry is recorded for them. Routes finish with commit_funding(),
which writes the media file and commits, deleting the file again if the
commit fails.

Payer locking:
  The payer row is loaded with SELECT ... FOR UPDATE and the balance is
  written with a compare-and-swap (see account_service.swap_balance), so
  two concurrent fundings by the same payer can never spend the same
  points twice. The losing request fails with BalanceConflictError.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.exceptions import (
    BalanceConflictError,
    CampaignNotFoundError,
    InsufficientBalanceError,
    InvalidArgumentError,
    PersistenceFailureError,
)
from bulkreach.models.campaign import Campaign, MobileNumberEntryType
from bulkreach.models.journal_entry import EntryType, JournalEntry
from bulkreach.schemas.campaign import CampaignDraft, LinkButton, PhoneButton
from bulkreach.services import account_service, journal_service, media_service
from bulkreach.services.funding_policy import policy_for
from bulkreach.services.media_service import StagedMedia

logger = logging.getLogger(__name__)

FULL_FUNDING_MESSAGE = "Campaign created successfully"


@dataclass
class FundingResult:
    """Outcome of a successful (full or partial) campaign funding."""
    campaign: Campaign
    entry: JournalEntry
    requested_count: int
    funded_count: int
    points_deducted: int
    remaining_balance: int

    @property
    def excluded_count(self) -> int:
        return self.requested_count - self.funded_count

    @property
    def is_partial(self) -> bool:
        return self.excluded_count > 0

    @property
    def campaign_id(self) -> uuid.UUID:
        return self.campaign.id

    @property
    def transaction_id(self) -> uuid.UUID:
        return self.entry.id

    @property
    def message(self) -> str:
        if not self.is_partial:
            return FULL_FUNDING_MESSAGE
        return (
            f"Campaign created with {self.funded_count} numbers (limited by balance). "
            f"{self.excluded_count} numbers were excluded."
        )


def normalize_recipients(items: Iterable[str]) -> list[str]:
    """
    Flatten recipient input into an ordered list.

    Each item may itself hold several comma-separated numbers. Entries are
    trimmed and blanks dropped; order and duplicates are kept.
    """
    recipients = []
    for item in items:
        for part in item.split(","):
            part = part.strip()
            if part:
                recipients.append(part)
    return recipients


def _describe_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error["loc"])
        messages.append(f"{field}: {error['msg']}")
    return "; ".join(messages)


def build_draft(
    *,
    campaign_name: str | None,
    message: str | None,
    country_code: str | None,
    mobile_numbers: Iterable[str] | None,
    mobile_number_entry_type: str | None = None,
    phone_button_text: str | None = None,
    phone_button_number: str | None = None,
    link_button_text: str | None = None,
    link_button_url: str | None = None,
) -> CampaignDraft:
    """
    Validate raw campaign input into a CampaignDraft.

    A button is attached only when both of its halves are given.

    Raises:
        InvalidArgumentError: Missing name/message/country code, no
                              recipients, or a field rule is violated.
    """
    campaign_name = (campaign_name or "").strip()
    message = (message or "").strip()
    country_code = (country_code or "").strip()
    if not campaign_name or not message or not country_code:
        raise InvalidArgumentError("Campaign name, message, and country code are required.")

    recipients = normalize_recipients(mobile_numbers or [])
    if not recipients:
        raise InvalidArgumentError("At least one recipient required")

    try:
        phone_button = None
        if phone_button_text and phone_button_number:
            phone_button = PhoneButton(
                text=phone_button_text.strip(), number=phone_button_number.strip()
            )
        link_button = None
        if link_button_text and link_button_url:
            link_button = LinkButton(text=link_button_text.strip(), url=link_button_url.strip())

        return CampaignDraft(
            campaign_name=campaign_name,
            message=message,
            country_code=country_code,
            recipients=recipients,
            mobile_number_entry_type=mobile_number_entry_type or MobileNumberEntryType.MANUAL,
            phone_button=phone_button,
            link_button=link_button,
        )
    except ValidationError as exc:
        raise InvalidArgumentError(_describe_validation_error(exc)) from exc


def _new_campaign(
    payer_id: uuid.UUID,
    draft: CampaignDraft,
    funded: list[str],
    media: StagedMedia | None,
) -> Campaign:
    campaign = Campaign(
        created_by=payer_id,
        campaign_name=draft.campaign_name,
        message=draft.message,
        mobile_number_entry_type=draft.mobile_number_entry_type.value,
        mobile_numbers=funded,
        country_code=draft.country_code,
        requested_number_count=len(draft.recipients),
        number_count=len(funded),
    )
    if draft.phone_button is not None:
        campaign.phone_button_text = draft.phone_button.text
        campaign.phone_button_number = draft.phone_button.number
    if draft.link_button is not None:
        campaign.link_button_text = draft.link_button.text
        campaign.link_button_url = draft.link_button.url
    if media is not None:
        campaign.media_type = media.type.value
        campaign.media_url = media.url
        campaign.media_filename = media.filename
        campaign.media_size = media.size
        campaign.media_mime_type = media.mime_type
    return campaign


async def fund_campaign(
    db: AsyncSession,
    payer_account_id: uuid.UUID,
    draft: CampaignDraft,
    media: StagedMedia | None = None,
) -> FundingResult:
    """
    Create a campaign for `draft` and charge the payer for it.

    Args:
        db: Database session (the request's unit of work).
        payer_account_id: The ledger account paying for the campaign.
        draft: Validated campaign input (see build_draft).
        media: Optional validated attachment; its descriptor is stored on
               the campaign. The file is written by commit_funding.

    Returns:
        FundingResult with the campaign, its debit entry and the counts.

    Raises:
        AccountNotFoundError: The payer doesn't exist or is deleted.
        AccountFrozenError: The payer has been frozen.
        InsufficientBalanceError: A metered payer holds no points.
        BalanceConflictError: The payer's balance changed concurrently.
        PersistenceFailureError: Writing the campaign, balance or journal
                                 entry failed.
    """
    requested = draft.recipients
    requested_count = len(requested)

    payer = await account_service.load_account(
        db, payer_account_id, lock=True, active_only=True, label="Payer"
    )
    policy = policy_for(payer)

    funded_count = policy.fundable(requested_count)
    if funded_count == 0:
        logger.warning(
            f"Refused campaign '{draft.campaign_name}' for account {payer.id}: "
            f"{requested_count} numbers requested, balance is {payer.balance}"
        )
        raise InsufficientBalanceError(
            account_id=payer.id,
            requested=requested_count,
            available=payer.balance,
        )

    funded = requested[:funded_count]
    balance_before = payer.balance
    balance_after = policy.charge(funded_count)

    try:
        campaign = _new_campaign(payer.id, draft, funded, media)
        db.add(campaign)
        await db.flush()

        await account_service.swap_balance(
            db, payer, balance_before, balance_after, campaigns_delta=1
        )

        entry = await journal_service.append_entry(
            db,
            receiver_id=payer.id,
            entry_type=EntryType.DEBIT,
            amount=funded_count,
            balance_before=balance_before,
            balance_after=balance_after,
            campaign_id=campaign.id,
            description=f"Campaign: {draft.campaign_name}",
        )
    except BalanceConflictError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        logger.error(f"Failed to persist campaign funding for account {payer_account_id}: {exc}")
        await db.rollback()
        raise PersistenceFailureError("Failed to persist campaign funding") from exc

    result = FundingResult(
        campaign=campaign,
        entry=entry,
        requested_count=requested_count,
        funded_count=funded_count,
        points_deducted=balance_before - balance_after,
        remaining_balance=payer.balance,
    )

    if result.is_partial:
        logger.warning(
            f"Partially funded campaign {campaign.id} for account {payer.id}: "
            f"{funded_count} of {requested_count} numbers"
        )
    else:
        logger.info(
            f"Funded campaign {campaign.id} for account {payer.id}: "
            f"{funded_count} numbers, {result.points_deducted} points"
        )
    return result


async def commit_funding(db: AsyncSession, media: StagedMedia | None = None) -> None:
    """
    Commit a funded campaign and write its media file.

    The file is written first and removed again if the commit fails, so
    MEDIA_ROOT never holds a file for a campaign that does not exist.

    Raises:
        PersistenceFailureError: The commit failed; the session is rolled back.
    """
    if media is not None:
        await media_service.store(media)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.error(f"Failed to commit campaign funding: {exc}")
        await db.rollback()
        if media is not None:
            media_service.discard(media)
        raise PersistenceFailureError("Failed to persist campaign funding") from exc


async def list_campaigns(
    db: AsyncSession,
    account_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[Campaign]:
    """List the campaigns paid for by an account, newest first."""
    result = await db.execute(
        select(Campaign)
        .where(Campaign.created_by == account_id)
        .order_by(Campaign.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_campaign(
    db: AsyncSession,
    campaign_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
) -> Campaign:
    """
    Get a campaign. When `account_id` is given it must be the payer.

    Raises:
        CampaignNotFoundError: If the campaign doesn't exist or isn't visible.
    """
    query = select(Campaign).where(Campaign.id == campaign_id)
    if account_id is not None:
        query = query.where(Campaign.created_by == account_id)

    result = await db.execute(query)
    campaign = result.scalar_one_or_none()
    if campaign is None:
        raise CampaignNotFoundError(campaign_id)
    return campaign
