"""
JournalEntry model — the append-only record of every balance mutation.

Each row describes one change (or one refused change) to ONE ledger
account, the `receiver_id`:

  - type: "credit" (points in) or "debit" (points out)
  - amount: always positive; the direction is the type
  - balance_before / balance_after: snapshots of the receiver's balance
    at the instant of the mutation
  - status: "success", or "failed" for a refused credit/debit that is
    kept for the audit trail (failed rows have balance_before == balance_after)
  - sender_id: the counter-party account, when the points came from or
    went to another account in the hierarchy
  - campaign_id: the campaign this entry paid for, if any

Campaign funding writes a success debit with amount = number of funded
recipients. For admin payers no points are consumed, so the entry records
the funded count with balance_before == balance_after.

Rows are only ever inserted. Nothing in the application updates or
deletes them.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from bulkreach.database import Base


class EntryType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class EntryStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class JournalEntry(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
        Index("ix_transactions_receiver_created", "receiver_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        index=True,
    )

    # Points, always positive
    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    balance_before: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    balance_after: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=EntryStatus.SUCCESS.value,
        index=True,
    )

    # The account whose balance this entry describes
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("ledger_accounts.id"),
        nullable=False,
        index=True,
    )

    # Counter-party (NULL for campaign funding and minted credits)
    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("ledger_accounts.id"),
        nullable=True,
        index=True,
    )

    campaign_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("campaigns.id"),
        nullable=True,
        index=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
