"""
LedgerAccount model — the business profile that holds a points balance.

Every admin, reseller and user business in the dashboard owns exactly one
ledger account. It carries:
  - the role that decides how campaigns are paid for
  - the points balance (1 point = 1 fundable recipient)
  - the reseller hierarchy link (parent_account_id = who provisioned it)
  - a running campaign counter

Balance management:
  `balance` is mutated only inside a unit of work that also appends a
  journal entry (campaign funding, credit, debit). Writes go through
  account_service.swap_balance, a compare-and-swap on the previous value,
  so two requests that read the same balance cannot both spend it.

Owned campaigns and journal entries:
  Campaign.created_by and JournalEntry.receiver_id point back at the account.
  Inserting a row with that foreign key is how a campaign or transaction is
  appended to the account's owned lists.

Admin accounts:
  The CHECK constraint keeps metered balances non-negative. Admin balances
  are never consumed, so whatever value they hold stays untouched.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bulkreach.database import Base


class AccountRole(str, enum.Enum):
    """
    Position of a business in the reseller hierarchy.

    Inherits from str so the value serializes naturally to JSON.
    """
    ADMIN = "admin"         # Platform operator, funds campaigns without spending points
    RESELLER = "reseller"   # Provisions and tops up its own users
    USER = "user"           # End customer running campaigns


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class LedgerAccount(Base):
    __tablename__ = "ledger_accounts"

    __table_args__ = (
        CheckConstraint(
            "role = 'ADMIN' OR balance >= 0",
            name="ck_ledger_accounts_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # One-to-one with the login identity
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
    )

    # Reseller or admin that provisioned this account (NULL for the root admin)
    parent_account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("ledger_accounts.id"),
        nullable=True,
        index=True,
    )

    company_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    # Denormalized from User so account listings don't need a JOIN
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    phone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    role: Mapped[AccountRole] = mapped_column(
        Enum(AccountRole),
        default=AccountRole.USER,
        nullable=False,
    )

    # Spendable points
    balance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    total_campaigns: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="ledger_account",
    )
