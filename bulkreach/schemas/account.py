"""
Pydantic schemas for ledger account endpoints.

Balances are integer points: one point pays for one recipient.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from bulkreach.models.ledger_account import AccountRole, AccountStatus
from bulkreach.schemas.common import CamelModel


class AccountProvisionRequest(CamelModel):
    """Request body for POST /accounts."""
    email: EmailStr
    password: str = Field(min_length=8)
    company_name: str = Field(min_length=1, max_length=200)
    role: Literal["reseller", "user"] = "user"
    phone: str | None = Field(default=None, max_length=20)


class AccountStatusUpdate(CamelModel):
    """Request body for PATCH /admin/accounts/{id}/status: freeze or unfreeze."""
    status: Literal["active", "inactive"]


class AccountResponse(CamelModel):
    """Public representation of a ledger account."""
    id: uuid.UUID
    user_id: uuid.UUID
    parent_account_id: uuid.UUID | None
    company_name: str
    email: str
    phone: str | None
    role: AccountRole
    balance: int
    total_campaigns: int
    status: AccountStatus
    created_at: datetime


class AccountDetailResponse(AccountResponse):
    """The caller's own account plus the IDs of what it owns."""
    campaign_ids: list[uuid.UUID]
    transaction_ids: list[uuid.UUID]


class BalanceResponse(CamelModel):
    """
    Balance check response — includes both cached and computed values.

    `match` is False when the stored balance disagrees with the sum of the
    account's successful journal entries, which indicates an integrity
    problem.
    """
    account_id: uuid.UUID
    cached_balance: int
    computed_balance: int
    match: bool
