"""
Accounts router — the caller's own ledger account and its sub-accounts.

Endpoints (require JWT):
  GET    /accounts/me            — Own account with owned campaign/transaction IDs
  GET    /accounts/me/balance    — Own balance, cached vs. computed
  POST   /accounts               — Provision a sub-account   [admin, reseller]
  GET    /accounts/children      — List direct sub-accounts  [admin, reseller]

Cross-account reads for admins live in the admin router.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.dependencies import Principal, get_current_principal, require_authority
from bulkreach.models.ledger_account import AccountRole
from bulkreach.schemas.account import (
    AccountDetailResponse,
    AccountProvisionRequest,
    AccountResponse,
    BalanceResponse,
)
from bulkreach.services import account_service

router = APIRouter()


@router.get(
    "/me",
    response_model=AccountDetailResponse,
    summary="Get your ledger account",
)
async def get_my_account(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the caller's ledger account, including the IDs of the campaigns it
    paid for and the journal entries describing its balance.
    """
    account = await account_service.load_account(db, principal.account_id)
    campaign_ids, transaction_ids = await account_service.get_owned_ids(db, account.id)
    return AccountDetailResponse(
        **AccountResponse.model_validate(account).model_dump(),
        campaign_ids=campaign_ids,
        transaction_ids=transaction_ids,
    )


@router.get(
    "/me/balance",
    response_model=BalanceResponse,
    summary="Check your balance",
)
async def get_my_balance(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the balance, both cached and computed from the journal.

    A `match` of false indicates a data integrity issue that needs
    investigation.
    """
    return await account_service.get_balance(db, principal.account_id)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision a sub-account",
)
async def provision_account(
    request: AccountProvisionRequest,
    principal: Principal = Depends(require_authority),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a login and ledger account below the caller.

    Admins may create resellers and users; resellers may create users.
    The new account starts with 0 points; top it up with
    POST /transactions/credit.
    """
    provisioner = await account_service.load_account(db, principal.account_id)
    return await account_service.provision_account(
        db=db,
        provisioner=provisioner,
        email=request.email,
        password=request.password,
        company_name=request.company_name,
        role=AccountRole(request.role),
        phone=request.phone,
    )


@router.get(
    "/children",
    response_model=list[AccountResponse],
    summary="List your sub-accounts",
)
async def list_children(
    principal: Principal = Depends(require_authority),
    db: AsyncSession = Depends(get_db),
):
    """List the non-deleted accounts the caller provisioned."""
    return await account_service.list_children(db, principal.account_id)
