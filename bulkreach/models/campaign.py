"""
Campaign model — a funded bulk message and its recipient list.

A campaign is created only by the funding protocol, in the same unit of
work that debits the payer and writes the journal entry. `mobile_numbers`
holds the funded prefix of what was requested, so

    number_count == len(mobile_numbers) <= requested_number_count

Optional call-to-action buttons and the media attachment are stored as
flat columns; the API layer nests them back into objects. Delivery to a
messaging provider is not part of this service, so `status` stays at
"pending" after creation.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from bulkreach.database import Base


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"


class CampaignStatus(str, enum.Enum):
    PENDING = "pending"


class MobileNumberEntryType(str, enum.Enum):
    MANUAL = "manual"
    UPLOAD = "upload"


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Paying ledger account
    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("ledger_accounts.id"),
        nullable=False,
        index=True,
    )

    campaign_name: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Call-to-action buttons: both halves set, or both NULL
    phone_button_text: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone_button_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    link_button_text: Mapped[str | None] = mapped_column(String(20), nullable=True)
    link_button_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Media attachment descriptor (NULL when no file was uploaded)
    media_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    media_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    media_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    media_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    media_mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    mobile_number_entry_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=MobileNumberEntryType.MANUAL.value,
    )

    # Funded recipients, in request order
    mobile_numbers: Mapped[list[str]] = mapped_column(JSON, nullable=False)

    country_code: Mapped[str] = mapped_column(String(5), nullable=False)

    requested_number_count: Mapped[int] = mapped_column(Integer, nullable=False)
    number_count: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        default=CampaignStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
