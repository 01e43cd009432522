"""
Test fixtures for the BulkReach API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated) bound to that database
  - admin_account: The root admin, provisioned directly through the service
  - make_account: Factory for reseller/user accounts with a starting balance
  - auth_headers: Bearer headers for any account

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - The client swaps bulkreach.database.AsyncSessionLocal for a factory
    bound to the test engine, so requests go through the real get_db and
    its commit/rollback rules.
  - Starting balances are given with admin credits, so every point in a
    test is backed by a journal entry just like in production.
"""

import os
import tempfile
import uuid

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="bulkreach-media-"))

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from bulkreach import database
from bulkreach.database import Base
from bulkreach.main import app
from bulkreach.models.ledger_account import AccountRole, LedgerAccount
from bulkreach.security import create_access_token
from bulkreach.services import account_service, ledger_service


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "SecurePass123!"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    get_db opens its sessions from database.AsyncSessionLocal, so patching
    that factory routes every request to the in-memory test database.
    The patch uses its own MonkeyPatch so a test calling monkeypatch.undo()
    does not detach the client from the test database.
    """
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(database, "AsyncSessionLocal", session_factory)

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac


@pytest_asyncio.fixture
async def admin_account(db_session) -> LedgerAccount:
    """The root admin (no parent), as demo/create_admin.py would create it."""
    account = await account_service.provision_account(
        db_session,
        provisioner=None,
        email="admin@example.com",
        password=TEST_PASSWORD,
        company_name="BulkReach Ops",
        role=AccountRole.ADMIN,
    )
    await db_session.commit()
    return account


@pytest.fixture
def make_account(db_session, admin_account):
    """
    Factory fixture: provision an account and give it a starting balance.

    Usage:
        user = await make_account(balance=7)
        reseller = await make_account(role=AccountRole.RESELLER, balance=100)
        child = await make_account(parent=reseller)
    """

    async def _make(
        role: AccountRole = AccountRole.USER,
        balance: int = 0,
        parent: LedgerAccount | None = None,
        email: str | None = None,
    ) -> LedgerAccount:
        account = await account_service.provision_account(
            db_session,
            provisioner=parent or admin_account,
            email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
            password=TEST_PASSWORD,
            company_name=f"Test {role.value.title()} Co",
            role=role,
        )
        if balance:
            await ledger_service.credit_balance(
                db_session, admin_account.id, account.id, balance, "Opening balance"
            )
        await db_session.commit()
        return account

    return _make


@pytest.fixture
def auth_headers():
    """Build an Authorization header for an account's login."""

    def _headers(account: LedgerAccount) -> dict:
        token = create_access_token(data={"sub": str(account.user_id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def campaign_form():
    """Build a valid multipart form for POST /campaigns."""

    def _form(numbers: list[str], **overrides) -> dict:
        form = {
            "campaignName": "Spring Sale",
            "message": "Everything 20% off this weekend!",
            "countryCode": "+91",
            "mobileNumbers": numbers,
        }
        form.update(overrides)
        return form

    return _form
