"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientBalanceError)
without importing HTTP concepts. The handlers registered here translate them
into HTTP responses with a consistent body:

    {"success": false, "detail": "...", "error_type": "..."}

Exception hierarchy:
    BulkReachError (base)
    ├── InvalidArgumentError      — missing/invalid campaign fields, bad media, bad amounts
    ├── AccountNotFoundError      — ledger account missing or soft-deleted
    ├── AccountFrozenError        — ledger account frozen by an admin
    ├── CampaignNotFoundError     — campaign missing or not owned by the caller
    ├── JournalEntryNotFoundError — journal entry missing or not visible to the caller
    ├── InsufficientBalanceError  — nothing can be funded / debit larger than balance
    ├── PersistenceFailureError   — the unit of work could not be written
    │   └── BalanceConflictError  — the balance changed under a concurrent request
    ├── UnauthorizedAccessError   — role or hierarchy does not allow the operation
    ├── DuplicateEmailError       — provisioning with an email already in use
    └── InvalidCredentialsError   — login failure
"""

import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BulkReachError(Exception):
    """Base exception for all BulkReach domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class InvalidArgumentError(BulkReachError):
    """Raised when a request is rejected before any state is touched."""


class AccountNotFoundError(BulkReachError):
    """Raised when a ledger account does not exist or has been deleted."""

    def __init__(self, account_id: uuid.UUID | None, label: str = "Account"):
        self.account_id = account_id
        if account_id is None:
            super().__init__(f"{label} not found")
        else:
            super().__init__(f"{label} {account_id} not found")


class AccountFrozenError(BulkReachError):
    """Raised when a frozen (inactive) account tries to spend, move or receive points."""

    def __init__(self, account_id: uuid.UUID | None = None):
        self.account_id = account_id
        super().__init__("Your account is frozen. Contact support.")


class CampaignNotFoundError(BulkReachError):
    """Raised when a campaign does not exist or belongs to another account."""

    def __init__(self, campaign_id: uuid.UUID):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign {campaign_id} not found")


class JournalEntryNotFoundError(BulkReachError):
    """Raised when a journal entry does not exist for the requesting account."""

    def __init__(self, entry_id: uuid.UUID):
        self.entry_id = entry_id
        super().__init__(f"Transaction {entry_id} not found")


class InsufficientBalanceError(BulkReachError):
    """
    Raised when an account's balance cannot cover an operation.

    For campaign funding this means the payer has no points at all; partial
    funding is a successful outcome, not this error.

    Attributes:
        account_id: The account that lacks points.
        requested: Points the operation asked for.
        available: The account's balance at the time of the check.
    """

    def __init__(self, account_id: uuid.UUID, requested: int, available: int):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance: requested {requested} points, "
            f"available {available} points"
        )


class PersistenceFailureError(BulkReachError):
    """Raised when the unit of work cannot be written. The request is rolled back."""

    def __init__(self, detail: str = "Failed to persist changes"):
        super().__init__(detail)


class BalanceConflictError(PersistenceFailureError):
    """Raised when an account's balance changed between read and write."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(
            f"Balance of account {account_id} was modified concurrently; "
            "resubmit the request"
        )


class UnauthorizedAccessError(BulkReachError):
    """Raised when a user attempts an operation their role or hierarchy forbids."""

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class DuplicateEmailError(BulkReachError):
    """Raised when provisioning an account with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(BulkReachError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid email or password")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_response(status_code: int, exc: BulkReachError, error_type: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "detail": exc.detail, "error_type": error_type, **extra},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Called once during app startup in main.py.
    """

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(
        request: Request, exc: InvalidArgumentError
    ) -> JSONResponse:
        return _error_response(400, exc, "invalid_argument")

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return _error_response(404, exc, "account_not_found")

    @app.exception_handler(AccountFrozenError)
    async def account_frozen_handler(
        request: Request, exc: AccountFrozenError
    ) -> JSONResponse:
        return _error_response(403, exc, "account_frozen")

    @app.exception_handler(CampaignNotFoundError)
    async def campaign_not_found_handler(
        request: Request, exc: CampaignNotFoundError
    ) -> JSONResponse:
        return _error_response(404, exc, "campaign_not_found")

    @app.exception_handler(JournalEntryNotFoundError)
    async def journal_entry_not_found_handler(
        request: Request, exc: JournalEntryNotFoundError
    ) -> JSONResponse:
        return _error_response(404, exc, "transaction_not_found")

    @app.exception_handler(InsufficientBalanceError)
    async def insufficient_balance_handler(
        request: Request, exc: InsufficientBalanceError
    ) -> JSONResponse:
        return _error_response(
            400,
            exc,
            "insufficient_balance",
            requested=exc.requested,
            available=exc.available,
        )

    @app.exception_handler(BalanceConflictError)
    async def balance_conflict_handler(
        request: Request, exc: BalanceConflictError
    ) -> JSONResponse:
        return _error_response(409, exc, "balance_conflict")

    @app.exception_handler(PersistenceFailureError)
    async def persistence_failure_handler(
        request: Request, exc: PersistenceFailureError
    ) -> JSONResponse:
        return _error_response(500, exc, "persistence_failure")

    @app.exception_handler(UnauthorizedAccessError)
    async def unauthorized_access_handler(
        request: Request, exc: UnauthorizedAccessError
    ) -> JSONResponse:
        return _error_response(403, exc, "unauthorized_access")

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(
        request: Request, exc: DuplicateEmailError
    ) -> JSONResponse:
        return _error_response(409, exc, "duplicate_email")

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return _error_response(401, exc, "invalid_credentials")
