"""
Tests for credits and debits between accounts.

These tests verify:
  - Admin credits mint points; admin debits burn them
  - Reseller credits are paid from the reseller's own balance
  - Refused movements are recorded as failed entries (audit trail)
  - Only the managing admin/reseller may move points
"""

import uuid

import pytest

from bulkreach.exceptions import InsufficientBalanceError, InvalidArgumentError
from bulkreach.models.ledger_account import AccountRole
from bulkreach.services import account_service, ledger_service


class TestAdminMovements:

    async def test_admin_credit(self, client, admin_account, make_account, auth_headers):
        user = await make_account()

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(user.id), "amount": 250, "description": "Top-up"},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["receiverBalance"] == 250
        assert body["counterEntry"] is None
        entry = body["entry"]
        assert entry["type"] == "credit"
        assert entry["amount"] == 250
        assert entry["balanceBefore"] == 0
        assert entry["balanceAfter"] == 250
        assert entry["senderId"] == str(admin_account.id)

    async def test_admin_debit(self, client, admin_account, make_account, auth_headers):
        user = await make_account(balance=100)

        response = await client.post(
            "/transactions/debit",
            json={"receiverId": str(user.id), "amount": 40},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 201
        assert response.json()["receiverBalance"] == 60
        assert response.json()["entry"]["type"] == "debit"

    async def test_debit_beyond_balance_records_failed_entry(
        self, client, admin_account, make_account, auth_headers
    ):
        user = await make_account(balance=10)

        response = await client.post(
            "/transactions/debit",
            json={"receiverId": str(user.id), "amount": 11},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 400
        assert response.json()["error_type"] == "insufficient_balance"

        entries = (await client.get("/transactions", headers=auth_headers(user))).json()
        failed = [e for e in entries if e["status"] == "failed"]
        assert len(failed) == 1
        assert failed[0]["amount"] == 11
        assert failed[0]["balanceBefore"] == failed[0]["balanceAfter"] == 10

        only_success = (
            await client.get("/transactions?includeFailed=false", headers=auth_headers(user))
        ).json()
        assert all(e["status"] == "success" for e in only_success)

    async def test_non_positive_amount_rejected(
        self, client, admin_account, make_account, auth_headers
    ):
        user = await make_account()

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(user.id), "amount": 0},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 422

    async def test_unknown_receiver(self, client, admin_account, auth_headers):
        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(uuid.uuid4()), "amount": 5},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 404
        assert response.json()["detail"].startswith("Receiver ")


class TestResellerMovements:

    async def test_reseller_credit_moves_points_down(
        self, client, make_account, auth_headers
    ):
        reseller = await make_account(role=AccountRole.RESELLER, balance=100)
        child = await make_account(parent=reseller)

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(child.id), "amount": 30},
            headers=auth_headers(reseller),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["receiverBalance"] == 30
        assert body["counterEntry"]["type"] == "debit"
        assert body["counterEntry"]["balanceAfter"] == 70

        balance = (await client.get("/accounts/me/balance", headers=auth_headers(reseller))).json()
        assert balance["cachedBalance"] == 70
        assert balance["match"] is True

    async def test_reseller_debit_returns_points(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER, balance=100)
        child = await make_account(parent=reseller, balance=20)

        response = await client.post(
            "/transactions/debit",
            json={"receiverId": str(child.id), "amount": 15},
            headers=auth_headers(reseller),
        )

        assert response.status_code == 201
        assert response.json()["receiverBalance"] == 5
        assert response.json()["counterEntry"]["balanceAfter"] == 115

    async def test_reseller_cannot_overdraw_itself(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER, balance=10)
        child = await make_account(parent=reseller)

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(child.id), "amount": 50},
            headers=auth_headers(reseller),
        )

        assert response.status_code == 400
        assert response.json()["available"] == 10

        child_balance = (await client.get("/accounts/me/balance", headers=auth_headers(child))).json()
        assert child_balance["cachedBalance"] == 0

    async def test_reseller_cannot_touch_foreign_accounts(
        self, client, make_account, auth_headers
    ):
        reseller = await make_account(role=AccountRole.RESELLER, balance=100)
        outsider = await make_account()

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(outsider.id), "amount": 5},
            headers=auth_headers(reseller),
        )

        assert response.status_code == 403
        assert response.json()["error_type"] == "unauthorized_access"

    async def test_user_cannot_move_points(self, client, make_account, auth_headers):
        user = await make_account(balance=10)
        other = await make_account()

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(other.id), "amount": 5},
            headers=auth_headers(user),
        )

        assert response.status_code == 403


class TestLedgerService:

    async def test_self_movement_rejected(self, db_session, admin_account):
        with pytest.raises(InvalidArgumentError):
            await ledger_service.credit_balance(db_session, admin_account.id, admin_account.id, 5)

    async def test_failed_credit_leaves_balances(self, db_session, make_account):
        reseller = await make_account(role=AccountRole.RESELLER, balance=3)
        child = await make_account(parent=reseller)

        with pytest.raises(InsufficientBalanceError):
            await ledger_service.credit_balance(db_session, reseller.id, child.id, 4)
        await db_session.commit()

        reseller_balance = await account_service.get_balance(db_session, reseller.id)
        child_balance = await account_service.get_balance(db_session, child.id)
        assert reseller_balance["cached_balance"] == 3
        assert reseller_balance["match"] is True
        assert child_balance["cached_balance"] == 0
