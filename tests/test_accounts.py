"""
Tests for account provisioning, the hierarchy and admin oversight.

These tests verify:
  - Admins provision resellers and users; resellers provision users
  - Users cannot provision anyone; resellers cannot create resellers
  - New accounts start at zero and link to their provisioner
  - Cached and computed balances agree
  - Admin-only endpoints are closed to everyone else
  - Soft deletion hides an account without losing its history
  - Frozen accounts are locked out until an admin unfreezes them
  - Emails are unique regardless of case
"""

import pytest

from bulkreach.exceptions import AccountFrozenError
from bulkreach.models.ledger_account import AccountRole
from bulkreach.services import ledger_service


def provision_body(email: str, role: str = "user") -> dict:
    return {
        "email": email,
        "password": "SecurePass123!",
        "companyName": "Acme Retail",
        "role": role,
    }


class TestProvisioning:

    async def test_admin_provisions_reseller(self, client, admin_account, auth_headers):
        response = await client.post(
            "/accounts",
            json=provision_body("reseller@example.com", "reseller"),
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["role"] == "reseller"
        assert data["balance"] == 0
        assert data["totalCampaigns"] == 0
        assert data["status"] == "active"
        assert data["parentAccountId"] == str(admin_account.id)

    async def test_provisioned_account_can_login(self, client, admin_account, auth_headers):
        await client.post(
            "/accounts",
            json=provision_body("fresh@example.com"),
            headers=auth_headers(admin_account),
        )

        response = await client.post(
            "/auth/login", json={"email": "fresh@example.com", "password": "SecurePass123!"}
        )
        assert response.status_code == 200

    async def test_reseller_provisions_user_as_child(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER)

        created = await client.post(
            "/accounts", json=provision_body("child@example.com"), headers=auth_headers(reseller)
        )
        children = await client.get("/accounts/children", headers=auth_headers(reseller))

        assert created.status_code == 201
        assert created.json()["parentAccountId"] == str(reseller.id)
        assert [c["email"] for c in children.json()] == ["child@example.com"]

    async def test_reseller_cannot_provision_reseller(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER)

        response = await client.post(
            "/accounts",
            json=provision_body("other@example.com", "reseller"),
            headers=auth_headers(reseller),
        )

        assert response.status_code == 403
        assert response.json()["error_type"] == "unauthorized_access"

    async def test_user_cannot_provision(self, client, make_account, auth_headers):
        user = await make_account()

        response = await client.post(
            "/accounts", json=provision_body("x@example.com"), headers=auth_headers(user)
        )

        assert response.status_code == 403

    async def test_duplicate_email(self, client, admin_account, auth_headers):
        body = provision_body("dupe@example.com")
        await client.post("/accounts", json=body, headers=auth_headers(admin_account))

        response = await client.post("/accounts", json=body, headers=auth_headers(admin_account))

        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

    async def test_email_is_case_insensitive(self, client, admin_account, auth_headers):
        first = await client.post(
            "/accounts",
            json=provision_body("Alice@Example.com"),
            headers=auth_headers(admin_account),
        )
        assert first.status_code == 201
        assert first.json()["email"] == "alice@example.com"

        response = await client.post(
            "/accounts",
            json=provision_body("alice@example.com"),
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

    async def test_admin_role_cannot_be_requested(self, client, admin_account, auth_headers):
        response = await client.post(
            "/accounts",
            json=provision_body("boss@example.com", "admin"),
            headers=auth_headers(admin_account),
        )
        assert response.status_code == 422


class TestOwnAccount:

    async def test_me_includes_owned_ids(self, client, make_account, auth_headers):
        user = await make_account(balance=25)

        response = await client.get("/accounts/me", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 25
        assert data["campaignIds"] == []
        # The opening credit
        assert len(data["transactionIds"]) == 1

    async def test_balance_check_matches_journal(self, client, make_account, auth_headers):
        user = await make_account(balance=25)

        response = await client.get("/accounts/me/balance", headers=auth_headers(user))

        assert response.json() == {
            "accountId": str(user.id),
            "cachedBalance": 25,
            "computedBalance": 25,
            "match": True,
        }


class TestAdminOversight:

    async def test_admin_lists_accounts_by_role(
        self, client, admin_account, make_account, auth_headers
    ):
        await make_account(role=AccountRole.RESELLER)
        await make_account()
        await make_account()

        response = await client.get(
            "/admin/accounts?role=user", headers=auth_headers(admin_account)
        )

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert all(a["role"] == "user" for a in response.json())

    async def test_non_admin_is_forbidden(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER)

        for path in ("/admin/accounts", "/admin/transactions"):
            response = await client.get(path, headers=auth_headers(reseller))
            assert response.status_code == 403

    async def test_admin_sees_all_transactions(
        self, client, admin_account, make_account, auth_headers
    ):
        await make_account(balance=5)
        await make_account(balance=6)

        response = await client.get(
            "/admin/transactions?type=credit", headers=auth_headers(admin_account)
        )

        assert sorted(e["amount"] for e in response.json()) == [5, 6]

    async def test_soft_delete(self, client, admin_account, make_account, auth_headers):
        user = await make_account(balance=5)

        deleted = await client.delete(
            f"/admin/accounts/{user.id}", headers=auth_headers(admin_account)
        )
        assert deleted.status_code == 200
        assert deleted.json()["status"] == "deleted"

        listing = await client.get("/admin/accounts", headers=auth_headers(admin_account))
        assert str(user.id) not in [a["id"] for a in listing.json()]

        # History is kept
        kept = await client.get(
            f"/admin/accounts/{user.id}/transactions", headers=auth_headers(admin_account)
        )
        assert len(kept.json()) == 1

        again = await client.delete(
            f"/admin/accounts/{user.id}", headers=auth_headers(admin_account)
        )
        assert again.status_code == 404

    async def test_admin_cannot_be_deleted(self, client, admin_account, auth_headers):
        response = await client.delete(
            f"/admin/accounts/{admin_account.id}", headers=auth_headers(admin_account)
        )
        assert response.status_code == 403


class TestFreezing:

    async def freeze(self, client, admin_account, auth_headers, account, status="inactive"):
        return await client.patch(
            f"/admin/accounts/{account.id}/status",
            json={"status": status},
            headers=auth_headers(admin_account),
        )

    async def test_frozen_account_is_locked_out(
        self, client, admin_account, make_account, auth_headers, campaign_form
    ):
        user = await make_account(balance=5)

        frozen = await self.freeze(client, admin_account, auth_headers, user)
        assert frozen.status_code == 200
        assert frozen.json()["status"] == "inactive"

        response = await client.post(
            "/campaigns", data=campaign_form(["1", "2"]), headers=auth_headers(user)
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Your account is frozen. Contact support."

        me = await client.get("/accounts/me", headers=auth_headers(user))
        assert me.status_code == 403

        balance = await client.get(
            f"/admin/accounts/{user.id}/balance", headers=auth_headers(admin_account)
        )
        assert balance.json()["cachedBalance"] == 5

    async def test_unfrozen_account_can_fund_again(
        self, client, admin_account, make_account, auth_headers, campaign_form
    ):
        user = await make_account(balance=5)
        await self.freeze(client, admin_account, auth_headers, user)

        unfrozen = await self.freeze(client, admin_account, auth_headers, user, "active")
        assert unfrozen.json()["status"] == "active"

        response = await client.post(
            "/campaigns", data=campaign_form(["1", "2"]), headers=auth_headers(user)
        )
        assert response.status_code == 201
        assert response.json()["data"]["remainingBalance"] == 3

    async def test_frozen_account_cannot_receive_points(
        self, client, admin_account, make_account, auth_headers
    ):
        user = await make_account()
        await self.freeze(client, admin_account, auth_headers, user)

        response = await client.post(
            "/transactions/credit",
            json={"receiverId": str(user.id), "amount": 10},
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 403
        assert response.json()["error_type"] == "account_frozen"

    async def test_frozen_reseller_cannot_send_points(
        self, client, admin_account, make_account, auth_headers, db_session
    ):
        reseller = await make_account(role=AccountRole.RESELLER, balance=50)
        child = await make_account(parent=reseller)
        await self.freeze(client, admin_account, auth_headers, reseller)

        with pytest.raises(AccountFrozenError):
            await ledger_service.credit_balance(db_session, reseller.id, child.id, 10)

    async def test_only_admin_can_freeze(self, client, make_account, auth_headers):
        reseller = await make_account(role=AccountRole.RESELLER)
        child = await make_account(parent=reseller)

        response = await client.patch(
            f"/admin/accounts/{child.id}/status",
            json={"status": "inactive"},
            headers=auth_headers(reseller),
        )

        assert response.status_code == 403

    async def test_admin_cannot_be_frozen(self, client, admin_account, auth_headers):
        response = await self.freeze(client, admin_account, auth_headers, admin_account)
        assert response.status_code == 403

    async def test_status_must_be_active_or_inactive(
        self, client, admin_account, make_account, auth_headers
    ):
        user = await make_account()
        response = await self.freeze(client, admin_account, auth_headers, user, "deleted")
        assert response.status_code == 422
