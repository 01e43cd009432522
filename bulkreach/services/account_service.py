"""
Account service — data access and provisioning for ledger accounts.

This module handles:
  - Loading an account (optionally row-locked) and refusing deleted ones
  - Writing a new balance with a compare-and-swap on the old one
  - Provisioning sub-accounts inside the reseller hierarchy
  - Listing owned campaigns/transactions and direct sub-accounts
  - Balance verification (cached vs. computed from the journal)
  - Admin read access, freezing and soft deletion

Hierarchy rules:
  - An admin may provision resellers and users.
  - A reseller may provision users only; they become its children.
  - A user may not provision anyone.

Balance writes:
  swap_balance() issues UPDATE ... WHERE balance = <value read earlier>.
  If another request changed the balance in between, no row matches and
  BalanceConflictError is raised, which rolls back the whole request.
  Combined with SELECT ... FOR UPDATE on PostgreSQL this keeps concurrent
  spenders of one account from debiting more than it held.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.exceptions import (
    AccountFrozenError,
    AccountNotFoundError,
    BalanceConflictError,
    DuplicateEmailError,
    InvalidArgumentError,
    UnauthorizedAccessError,
)
from bulkreach.models.campaign import Campaign
from bulkreach.models.journal_entry import JournalEntry, EntryStatus
from bulkreach.models.ledger_account import AccountRole, AccountStatus, LedgerAccount
from bulkreach.models.user import User
from bulkreach.security import hash_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Emails are unique per mailbox, whatever case they were typed in."""
    return email.strip().lower()


# Roles each provisioner role may create
_PROVISIONABLE_ROLES = {
    AccountRole.ADMIN: {AccountRole.RESELLER, AccountRole.USER},
    AccountRole.RESELLER: {AccountRole.USER},
    AccountRole.USER: set(),
}


async def load_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    *,
    lock: bool = False,
    include_deleted: bool = False,
    active_only: bool = False,
    label: str = "Account",
) -> LedgerAccount:
    """
    Load a ledger account by ID.

    Args:
        db: Database session.
        account_id: The account to load.
        lock: Take a row lock (SELECT ... FOR UPDATE). No-op on SQLite.
        include_deleted: Return soft-deleted accounts instead of raising.
        active_only: Refuse frozen accounts. Set by every operation that
                     spends, moves or receives points.
        label: Noun used in the not-found message ("Payer", "Receiver", ...).

    Raises:
        AccountNotFoundError: If the account doesn't exist or is deleted.
        AccountFrozenError: If active_only is set and the account is frozen.
    """
    query = select(LedgerAccount).where(LedgerAccount.id == account_id)
    if lock:
        # populate_existing: overwrite an identity-map copy with the locked row
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_id, label)
    if account.status == AccountStatus.DELETED and not include_deleted:
        raise AccountNotFoundError(account_id, label)
    if account.status == AccountStatus.INACTIVE and active_only:
        raise AccountFrozenError(account.id)

    return account


async def get_account_for_user(db: AsyncSession, user_id: uuid.UUID) -> LedgerAccount:
    """Return the ledger account owned by a login identity."""
    result = await db.execute(
        select(LedgerAccount).where(LedgerAccount.user_id == user_id)
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise AccountNotFoundError(None)
    return account


async def swap_balance(
    db: AsyncSession,
    account: LedgerAccount,
    expected_balance: int,
    new_balance: int,
    *,
    campaigns_delta: int = 0,
) -> None:
    """
    Persist a new balance for `account` if it still holds `expected_balance`.

    Also bumps the campaign counter by `campaigns_delta` in the same
    statement. The in-memory account is refreshed afterwards.

    Raises:
        InvalidArgumentError: If a metered balance would go negative.
        BalanceConflictError: If the stored balance no longer equals
                              expected_balance.
    """
    if new_balance < 0 and account.role != AccountRole.ADMIN:
        raise InvalidArgumentError("Balance cannot become negative")

    values = {
        "balance": new_balance,
        "updated_at": datetime.now(timezone.utc),
    }
    if campaigns_delta:
        values["total_campaigns"] = LedgerAccount.total_campaigns + campaigns_delta

    result = await db.execute(
        update(LedgerAccount)
        .where(LedgerAccount.id == account.id)
        .where(LedgerAccount.balance == expected_balance)
        .values(**values)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        logger.warning(
            f"Balance conflict on account {account.id}: expected {expected_balance}"
        )
        raise BalanceConflictError(account.id)

    await db.refresh(account, attribute_names=["balance", "total_campaigns", "updated_at"])


async def provision_account(
    db: AsyncSession,
    provisioner: LedgerAccount | None,
    email: str,
    password: str,
    company_name: str,
    role: AccountRole,
    phone: str | None = None,
) -> LedgerAccount:
    """
    Create a login identity and its ledger account in one unit of work.

    New accounts start with a zero balance; points arrive through credits
    so that every point is backed by a journal entry.

    Args:
        db: Database session.
        provisioner: The admin/reseller creating the account, or None when
                     bootstrapping the root admin.
        email: Login email (must be unique, compared case-insensitively).
        password: Plaintext password, hashed before storage.
        company_name: Business name shown on the dashboard.
        role: Role of the new account.
        phone: Optional contact number.

    Raises:
        UnauthorizedAccessError: If the provisioner may not create this role.
        DuplicateEmailError: If the email is already registered.
    """
    email = normalize_email(email)

    if provisioner is not None and role not in _PROVISIONABLE_ROLES[provisioner.role]:
        raise UnauthorizedAccessError(
            f"A {provisioner.role.value} account cannot create {role.value} accounts"
        )

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateEmailError(email)

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    # Flush to get user.id assigned (needed for the FK below)
    await db.flush()

    account = LedgerAccount(
        user_id=user.id,
        parent_account_id=provisioner.id if provisioner is not None else None,
        company_name=company_name,
        email=email,
        phone=phone,
        role=role,
        balance=0,
    )
    db.add(account)
    await db.flush()

    logger.info(
        f"Provisioned {role.value} account {account.id}"
        + (f" under {provisioner.id}" if provisioner is not None else "")
    )
    return account


async def set_account_status(
    db: AsyncSession,
    account_id: uuid.UUID,
    new_status: AccountStatus,
) -> LedgerAccount:
    """
    [ADMIN ONLY] Freeze (INACTIVE) or unfreeze (ACTIVE) an account.

    A frozen account keeps its balance, campaigns and journal, but cannot
    use the API or take part in funding, credits or debits until it is
    unfrozen. Deletion goes through soft_delete_account instead.

    Raises:
        AccountNotFoundError: If the account doesn't exist or is deleted.
        InvalidArgumentError: If new_status is DELETED.
        UnauthorizedAccessError: If the target is an admin account.
    """
    if new_status == AccountStatus.DELETED:
        raise InvalidArgumentError("Use account deletion to delete an account")

    account = await load_account(db, account_id, lock=True)
    if account.role == AccountRole.ADMIN:
        raise UnauthorizedAccessError("Admin accounts cannot be frozen")

    account.status = new_status
    await db.flush()
    logger.info(f"Account {account.id} is now {new_status.value}")
    return account


async def get_owned_ids(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> tuple[list[uuid.UUID], list[uuid.UUID]]:
    """Return (campaign IDs, transaction IDs) owned by an account, oldest first."""
    campaigns = await db.execute(
        select(Campaign.id)
        .where(Campaign.created_by == account_id)
        .order_by(Campaign.created_at)
    )
    entries = await db.execute(
        select(JournalEntry.id)
        .where(JournalEntry.receiver_id == account_id)
        .order_by(JournalEntry.created_at)
    )
    return list(campaigns.scalars().all()), list(entries.scalars().all())


async def list_children(
    db: AsyncSession,
    parent_id: uuid.UUID,
) -> list[LedgerAccount]:
    """List the non-deleted accounts provisioned by `parent_id`."""
    result = await db.execute(
        select(LedgerAccount)
        .where(LedgerAccount.parent_account_id == parent_id)
        .where(LedgerAccount.status != AccountStatus.DELETED)
        .order_by(LedgerAccount.created_at)
    )
    return list(result.scalars().all())


async def get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> dict:
    """
    Get the account balance — both cached and computed from the journal.

    The computed balance is the sum of (balance_after - balance_before)
    over the account's successful journal entries. Accounts open at zero,
    so any difference from the cached value signals an integrity problem.
    Admin campaign debits contribute nothing since they don't move the
    balance.
    """
    account = await load_account(db, account_id, include_deleted=True)
    computed = await _compute_balance_from_journal(db, account_id)

    return {
        "account_id": account.id,
        "cached_balance": account.balance,
        "computed_balance": computed,
        "match": account.balance == computed,
    }


async def _compute_balance_from_journal(db: AsyncSession, account_id: uuid.UUID) -> int:
    result = await db.execute(
        select(
            func.coalesce(
                func.sum(JournalEntry.balance_after - JournalEntry.balance_before), 0
            )
        )
        .where(JournalEntry.receiver_id == account_id)
        .where(JournalEntry.status == EntryStatus.SUCCESS.value)
    )
    return result.scalar()


# ---------------------------------------------------------------------------
# Admin functions
# ---------------------------------------------------------------------------

async def admin_get_all_accounts(
    db: AsyncSession,
    role: AccountRole | None = None,
    include_deleted: bool = False,
) -> list[LedgerAccount]:
    """[ADMIN ONLY] List accounts across the whole hierarchy."""
    query = select(LedgerAccount).order_by(LedgerAccount.created_at)
    if role is not None:
        query = query.where(LedgerAccount.role == role)
    if not include_deleted:
        query = query.where(LedgerAccount.status != AccountStatus.DELETED)

    result = await db.execute(query)
    return list(result.scalars().all())


async def soft_delete_account(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> LedgerAccount:
    """
    [ADMIN ONLY] Mark an account deleted and deactivate its login.

    The account, its campaigns and its journal stay in place; deleted
    accounts can no longer pay for campaigns or receive credits.

    Raises:
        AccountNotFoundError: If the account doesn't exist or is already deleted.
        UnauthorizedAccessError: If the target is an admin account.
    """
    account = await load_account(db, account_id, lock=True)
    if account.role == AccountRole.ADMIN:
        raise UnauthorizedAccessError("Admin accounts cannot be deleted")

    account.status = AccountStatus.DELETED
    account.deleted_at = datetime.now(timezone.utc)

    user = await db.get(User, account.user_id)
    if user is not None:
        user.is_active = False

    await db.flush()
    logger.info(f"Soft-deleted account {account.id}")
    return account
