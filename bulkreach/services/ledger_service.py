"""
Ledger service — explicit credits and debits between accounts.

Points flow down the reseller hierarchy:

  credit  sender -> receiver   (top up a sub-account)
  debit   receiver -> sender   (claw points back from a sub-account)

Who may move points:
  - An admin may credit/debit any non-admin account.
  - A reseller may credit/debit only the accounts it provisioned.
  - Users cannot move points.
  - Frozen accounts neither send nor receive points.

Where the points come from is decided by the sender's funding policy:
  - Unmetered (admin): credits are minted and debits are burned; the
    admin's own balance never changes.
  - Metered (reseller): credits are paid out of the reseller's balance and
    debits return to it, so each movement writes two journal entries,
    one per account, linked through sender_id.

Refusals:
  When the paying side lacks points, a "failed" entry is appended for the
  audit trail before InsufficientBalanceError is raised. get_db commits
  domain errors, so that row survives while nothing else changed.

Deadlock prevention:
  Both accounts are locked in sorted UUID order, so two movements between
  the same pair in opposite directions always lock in the same order.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.exceptions import (
    InsufficientBalanceError,
    InvalidArgumentError,
    UnauthorizedAccessError,
)
from bulkreach.models.journal_entry import EntryStatus, EntryType, JournalEntry
from bulkreach.models.ledger_account import AccountRole, LedgerAccount
from bulkreach.services import account_service, journal_service
from bulkreach.services.funding_policy import policy_for

logger = logging.getLogger(__name__)


@dataclass
class LedgerMovement:
    """Outcome of a credit or debit, seen from the receiver's side."""
    account: LedgerAccount
    entry: JournalEntry
    counter_entry: JournalEntry | None = None


async def _lock_pair(
    db: AsyncSession,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
) -> tuple[LedgerAccount, LedgerAccount]:
    """Lock sender and receiver in sorted UUID order; return (sender, receiver)."""
    labels = {sender_id: "Sender", receiver_id: "Receiver"}
    locked = {}
    for account_id in sorted([sender_id, receiver_id]):
        locked[account_id] = await account_service.load_account(
            db, account_id, lock=True, active_only=True, label=labels[account_id]
        )
    return locked[sender_id], locked[receiver_id]


def _check_authority(sender: LedgerAccount, receiver: LedgerAccount) -> None:
    if sender.role == AccountRole.ADMIN:
        if receiver.role == AccountRole.ADMIN:
            raise UnauthorizedAccessError("Admin accounts do not hold transferable points")
        return
    if sender.role == AccountRole.RESELLER and receiver.parent_account_id == sender.id:
        return
    raise UnauthorizedAccessError("You can only move points for accounts you manage")


def _validate(sender_id: uuid.UUID, receiver_id: uuid.UUID, amount: int) -> None:
    if amount <= 0:
        raise InvalidArgumentError("Amount must be greater than 0")
    if sender_id == receiver_id:
        raise InvalidArgumentError("Cannot move points to the same account")


async def _refuse(
    db: AsyncSession,
    payer: LedgerAccount,
    counter_party: LedgerAccount,
    amount: int,
    description: str | None,
) -> None:
    """Record a failed debit on the payer and raise InsufficientBalanceError."""
    await journal_service.append_entry(
        db,
        receiver_id=payer.id,
        entry_type=EntryType.DEBIT,
        amount=amount,
        balance_before=payer.balance,
        balance_after=payer.balance,
        status=EntryStatus.FAILED,
        sender_id=counter_party.id,
        description=description or "Insufficient balance",
    )
    logger.warning(
        f"Refused moving {amount} points from account {payer.id}: "
        f"balance is {payer.balance}"
    )
    raise InsufficientBalanceError(
        account_id=payer.id,
        requested=amount,
        available=payer.balance,
    )


async def _move(
    db: AsyncSession,
    account: LedgerAccount,
    counter_party: LedgerAccount,
    entry_type: EntryType,
    amount: int,
    description: str | None,
) -> JournalEntry:
    before = account.balance
    after = before + amount if entry_type == EntryType.CREDIT else before - amount
    await account_service.swap_balance(db, account, before, after)
    return await journal_service.append_entry(
        db,
        receiver_id=account.id,
        entry_type=entry_type,
        amount=amount,
        balance_before=before,
        balance_after=after,
        sender_id=counter_party.id,
        description=description,
    )


async def credit_balance(
    db: AsyncSession,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    amount: int,
    description: str | None = None,
) -> LedgerMovement:
    """
    Add `amount` points to the receiver's balance.

    Args:
        db: Database session.
        sender_id: The admin/reseller issuing the points (the caller).
        receiver_id: The account being topped up.
        amount: Positive number of points.
        description: Optional memo stored on the journal entries.

    Returns:
        LedgerMovement with the receiver, its credit entry, and the
        sender's debit entry when the sender is metered.

    Raises:
        InvalidArgumentError: Non-positive amount or sender == receiver.
        AccountNotFoundError: Either account is missing or deleted.
        AccountFrozenError: Either account is frozen.
        UnauthorizedAccessError: The sender doesn't manage the receiver.
        InsufficientBalanceError: A metered sender holds fewer points.
        BalanceConflictError: A balance changed concurrently.
    """
    _validate(sender_id, receiver_id, amount)
    sender, receiver = await _lock_pair(db, sender_id, receiver_id)
    _check_authority(sender, receiver)

    counter_entry = None
    if policy_for(sender).consumes_balance:
        if sender.balance < amount:
            await _refuse(db, sender, receiver, amount, description)
        counter_entry = await _move(db, sender, receiver, EntryType.DEBIT, amount, description)

    entry = await _move(db, receiver, sender, EntryType.CREDIT, amount, description)

    logger.info(f"Credited {amount} points to account {receiver.id} from {sender.id}")
    return LedgerMovement(account=receiver, entry=entry, counter_entry=counter_entry)


async def debit_balance(
    db: AsyncSession,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    amount: int,
    description: str | None = None,
) -> LedgerMovement:
    """
    Remove `amount` points from the receiver's balance.

    The points go back to a metered sender; for an admin sender they
    simply leave circulation.

    Raises:
        InvalidArgumentError: Non-positive amount or sender == receiver.
        AccountNotFoundError: Either account is missing or deleted.
        AccountFrozenError: Either account is frozen.
        UnauthorizedAccessError: The sender doesn't manage the receiver.
        InsufficientBalanceError: The receiver holds fewer points.
        BalanceConflictError: A balance changed concurrently.
    """
    _validate(sender_id, receiver_id, amount)
    sender, receiver = await _lock_pair(db, sender_id, receiver_id)
    _check_authority(sender, receiver)

    if receiver.balance < amount:
        await _refuse(db, receiver, sender, amount, description)

    entry = await _move(db, receiver, sender, EntryType.DEBIT, amount, description)

    counter_entry = None
    if policy_for(sender).consumes_balance:
        counter_entry = await _move(db, sender, receiver, EntryType.CREDIT, amount, description)

    logger.info(f"Debited {amount} points from account {receiver.id} by {sender.id}")
    return LedgerMovement(account=receiver, entry=entry, counter_entry=counter_entry)
