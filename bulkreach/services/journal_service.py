"""
Journal service — append and read transaction journal entries.

The journal is append-only: this module inserts rows and reads them, and
nothing else in the application updates or deletes them. append_entry()
only flushes, so the entry commits or rolls back together with the
balance change it describes.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.exceptions import JournalEntryNotFoundError
from bulkreach.models.journal_entry import JournalEntry, EntryStatus, EntryType


async def append_entry(
    db: AsyncSession,
    *,
    receiver_id: uuid.UUID,
    entry_type: EntryType,
    amount: int,
    balance_before: int,
    balance_after: int,
    status: EntryStatus = EntryStatus.SUCCESS,
    sender_id: uuid.UUID | None = None,
    campaign_id: uuid.UUID | None = None,
    description: str | None = None,
) -> JournalEntry:
    """
    Append one entry to the journal inside the caller's unit of work.

    Returns:
        The flushed JournalEntry (its id is assigned).
    """
    entry = JournalEntry(
        receiver_id=receiver_id,
        type=entry_type.value,
        amount=amount,
        balance_before=balance_before,
        balance_after=balance_after,
        status=status.value,
        sender_id=sender_id,
        campaign_id=campaign_id,
        description=description,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_entries(
    db: AsyncSession,
    account_id: uuid.UUID,
    include_failed: bool = True,
    type_filter: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[JournalEntry]:
    """
    List an account's journal entries, newest first.

    Args:
        db: Database session.
        account_id: The account whose balance the entries describe.
        include_failed: Also return refused credit/debit attempts.
        type_filter: Optional "credit" or "debit".
        limit: Max number of results.
        offset: Number of results to skip.
    """
    query = (
        select(JournalEntry)
        .where(JournalEntry.receiver_id == account_id)
        .order_by(JournalEntry.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if not include_failed:
        query = query.where(JournalEntry.status == EntryStatus.SUCCESS.value)
    if type_filter:
        query = query.where(JournalEntry.type == type_filter)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_entry(
    db: AsyncSession,
    entry_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
) -> JournalEntry:
    """
    Get a single entry. When `account_id` is given the entry must describe
    that account's balance.

    Raises:
        JournalEntryNotFoundError: If the entry doesn't exist or isn't visible.
    """
    query = select(JournalEntry).where(JournalEntry.id == entry_id)
    if account_id is not None:
        query = query.where(JournalEntry.receiver_id == account_id)

    result = await db.execute(query)
    entry = result.scalar_one_or_none()
    if entry is None:
        raise JournalEntryNotFoundError(entry_id)
    return entry


async def admin_list_all_entries(
    db: AsyncSession,
    status_filter: str | None = None,
    type_filter: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[JournalEntry]:
    """[ADMIN ONLY] List journal entries across every account."""
    query = (
        select(JournalEntry)
        .order_by(JournalEntry.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    if status_filter:
        query = query.where(JournalEntry.status == status_filter)
    if type_filter:
        query = query.where(JournalEntry.type == type_filter)

    result = await db.execute(query)
    return list(result.scalars().all())
