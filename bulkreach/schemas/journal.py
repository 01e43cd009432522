"""
Pydantic schemas for credit/debit and journal endpoints.
"""

import uuid
from datetime import datetime

from pydantic import Field

from bulkreach.schemas.common import CamelModel


class LedgerMovementRequest(CamelModel):
    """Request body for POST /transactions/credit and /transactions/debit."""
    receiver_id: uuid.UUID
    amount: int = Field(gt=0, description="Points to move (must be positive)")
    description: str | None = Field(default=None, max_length=255)


class JournalEntryResponse(CamelModel):
    """Public representation of a journal entry."""
    id: uuid.UUID
    type: str
    amount: int
    balance_before: int
    balance_after: int
    status: str
    receiver_id: uuid.UUID
    sender_id: uuid.UUID | None
    campaign_id: uuid.UUID | None
    description: str | None
    created_at: datetime


class LedgerMovementResponse(CamelModel):
    """Response body for a successful credit or debit."""
    success: bool = True
    receiver_id: uuid.UUID
    receiver_balance: int
    entry: JournalEntryResponse
    counter_entry: JournalEntryResponse | None = None
