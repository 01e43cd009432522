"""
Admin router — organization-wide visibility, freezing and account removal.

All endpoints require the ADMIN role.

Endpoints:
  GET    /admin/accounts                            — List accounts across the hierarchy
  GET    /admin/accounts/{account_id}               — Get any account (deleted included)
  GET    /admin/accounts/{account_id}/balance       — Get any account's balance
  GET    /admin/accounts/{account_id}/transactions  — List any account's journal
  PATCH  /admin/accounts/{account_id}/status        — Freeze or unfreeze an account
  DELETE /admin/accounts/{account_id}               — Soft-delete an account
  GET    /admin/transactions                        — List ALL journal entries
  GET    /admin/transactions/{transaction_id}       — Get any journal entry

Keeping all admin routes in one router avoids route-ordering conflicts
between routers that share a prefix and have parameterized paths.
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.dependencies import Principal, require_admin
from bulkreach.models.ledger_account import AccountRole, AccountStatus
from bulkreach.schemas.account import AccountResponse, AccountStatusUpdate, BalanceResponse
from bulkreach.schemas.journal import JournalEntryResponse
from bulkreach.services import account_service, journal_service

router = APIRouter()


# ---------------------------------------------------------------------------
# Account admin endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/accounts",
    response_model=list[AccountResponse],
    summary="[Admin] List all accounts",
)
async def admin_list_all_accounts(
    role: Literal["admin", "reseller", "user"] | None = Query(None),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List every ledger account, optionally filtered by role."""
    return await account_service.admin_get_all_accounts(
        db,
        role=AccountRole(role) if role else None,
        include_deleted=include_deleted,
    )


@router.get(
    "/accounts/{account_id}",
    response_model=AccountResponse,
    summary="[Admin] Get any account's details",
)
async def admin_get_account(
    account_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get any account's details, soft-deleted accounts included."""
    return await account_service.load_account(db, account_id, include_deleted=True)


@router.get(
    "/accounts/{account_id}/balance",
    response_model=BalanceResponse,
    summary="[Admin] Get any account's balance",
)
async def admin_get_balance(
    account_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get any account's cached and computed balance."""
    return await account_service.get_balance(db, account_id)


@router.get(
    "/accounts/{account_id}/transactions",
    response_model=list[JournalEntryResponse],
    summary="[Admin] List any account's journal",
)
async def admin_list_account_transactions(
    account_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await account_service.load_account(db, account_id, include_deleted=True)
    return await journal_service.list_entries(db, account_id, limit=limit, offset=offset)


@router.patch(
    "/accounts/{account_id}/status",
    response_model=AccountResponse,
    summary="[Admin] Freeze or unfreeze an account",
)
async def admin_set_account_status(
    account_id: uuid.UUID,
    body: AccountStatusUpdate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Set an account to "inactive" (frozen) or back to "active".

    A frozen account gets 403 on every endpoint and cannot pay for
    campaigns, send points or receive them.
    """
    return await account_service.set_account_status(
        db, account_id, AccountStatus(body.status)
    )


@router.delete(
    "/accounts/{account_id}",
    response_model=AccountResponse,
    summary="[Admin] Soft-delete an account",
)
async def admin_delete_account(
    account_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Mark an account deleted and deactivate its login.

    Its campaigns and journal are kept. A deleted account can no longer
    pay for campaigns or take part in credits and debits.
    """
    return await account_service.soft_delete_account(db, account_id)


# ---------------------------------------------------------------------------
# Journal admin endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/transactions",
    response_model=list[JournalEntryResponse],
    summary="[Admin] List ALL journal entries",
)
async def admin_list_all_transactions(
    status: Literal["success", "failed"] | None = Query(None, description="Filter by status"),
    type: Literal["credit", "debit"] | None = Query(None, description="Filter by type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Org-wide audit trail, newest first."""
    return await journal_service.admin_list_all_entries(
        db=db,
        status_filter=status,
        type_filter=type,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/transactions/{transaction_id}",
    response_model=JournalEntryResponse,
    summary="[Admin] Get any journal entry by ID",
)
async def admin_get_transaction(
    transaction_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await journal_service.get_entry(db, transaction_id)
