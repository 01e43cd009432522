"""
Transactions router — point movements and the caller's journal.

Endpoints (require JWT):
  POST /transactions/credit             — Top up a sub-account   [admin, reseller]
  POST /transactions/debit              — Claw points back        [admin, reseller]
  GET  /transactions                    — List own journal entries (with filters)
  GET  /transactions/{transaction_id}   — Get one own journal entry

Campaign debits are not created here; they are written by POST /campaigns
together with the campaign they pay for.
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.dependencies import Principal, get_current_principal, require_authority
from bulkreach.schemas.journal import (
    JournalEntryResponse,
    LedgerMovementRequest,
    LedgerMovementResponse,
)
from bulkreach.services import journal_service, ledger_service

router = APIRouter()


def _movement_response(movement: ledger_service.LedgerMovement) -> LedgerMovementResponse:
    return LedgerMovementResponse(
        receiver_id=movement.account.id,
        receiver_balance=movement.account.balance,
        entry=JournalEntryResponse.model_validate(movement.entry),
        counter_entry=(
            JournalEntryResponse.model_validate(movement.counter_entry)
            if movement.counter_entry is not None
            else None
        ),
    )


@router.post(
    "/credit",
    response_model=LedgerMovementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Credit points to a sub-account",
)
async def credit(
    request: LedgerMovementRequest,
    principal: Principal = Depends(require_authority),
    db: AsyncSession = Depends(get_db),
):
    """
    Add points to an account you manage.

    Admin credits create new points. Reseller credits are paid out of the
    reseller's own balance; if it is too low the attempt is recorded as a
    failed entry and 400 is returned.
    """
    movement = await ledger_service.credit_balance(
        db=db,
        sender_id=principal.account_id,
        receiver_id=request.receiver_id,
        amount=request.amount,
        description=request.description,
    )
    return _movement_response(movement)


@router.post(
    "/debit",
    response_model=LedgerMovementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Debit points from a sub-account",
)
async def debit(
    request: LedgerMovementRequest,
    principal: Principal = Depends(require_authority),
    db: AsyncSession = Depends(get_db),
):
    """
    Remove points from an account you manage.

    Fails with 400 (and a failed entry on the account) when the account
    holds fewer points than requested.
    """
    movement = await ledger_service.debit_balance(
        db=db,
        sender_id=principal.account_id,
        receiver_id=request.receiver_id,
        amount=request.amount,
        description=request.description,
    )
    return _movement_response(movement)


@router.get(
    "",
    response_model=list[JournalEntryResponse],
    summary="List your journal entries",
)
async def list_transactions(
    include_failed: bool = Query(True, alias="includeFailed"),
    type: Literal["credit", "debit"] | None = Query(None, description="Filter by type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the entries describing the caller's balance, newest first."""
    return await journal_service.list_entries(
        db=db,
        account_id=principal.account_id,
        include_failed=include_failed,
        type_filter=type,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{transaction_id}",
    response_model=JournalEntryResponse,
    summary="Get a single journal entry",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the caller's journal entries."""
    return await journal_service.get_entry(db, transaction_id, principal.account_id)
