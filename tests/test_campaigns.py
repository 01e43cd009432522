"""
Tests for campaign endpoints.

These tests verify:
  - POST /campaigns returns the funding envelope (full and partial)
  - Refusals and validation errors come back as 400 with nothing created
  - A failed write rolls back the campaign and the balance together
  - Media uploads are validated, stored and described on the campaign
  - A campaign that fails to commit leaves no media file behind
  - Campaign reads are scoped to the caller
"""

from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.config import settings
from bulkreach.models.ledger_account import AccountRole
from bulkreach.services import journal_service

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestCreateCampaign:

    async def test_full_funding_envelope(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=50)

        response = await client.post(
            "/campaigns",
            data=campaign_form(["9876543210", "9876543211"]),
            headers=auth_headers(user),
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Campaign created successfully"

        data = body["data"]
        assert data["campaignName"] == "Spring Sale"
        assert data["countryCode"] == "+91"
        assert data["mobileNumberEntryType"] == "manual"
        assert data["requestedNumberCount"] == 2
        assert data["actualNumberCount"] == 2
        assert data["excludedNumberCount"] == 0
        assert data["pointsDeducted"] == 2
        assert data["remainingBalance"] == 48
        assert data["phoneButton"] is None
        assert data["media"] is None
        assert data["campaignId"]
        assert data["transactionId"]

    async def test_partial_funding_envelope(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=7)

        response = await client.post(
            "/campaigns",
            data=campaign_form([str(n) for n in range(1, 11)]),
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == (
            "Campaign created with 7 numbers (limited by balance). "
            "3 numbers were excluded."
        )
        assert body["data"]["actualNumberCount"] == 7
        assert body["data"]["excludedNumberCount"] == 3
        assert body["data"]["remainingBalance"] == 0

        campaign = await client.get(
            f"/campaigns/{body['data']['campaignId']}", headers=auth_headers(user)
        )
        assert campaign.json()["mobileNumbers"] == ["1", "2", "3", "4", "5", "6", "7"]
        assert campaign.json()["status"] == "pending"

    async def test_comma_separated_numbers(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=10)

        response = await client.post(
            "/campaigns",
            data=campaign_form(["111,222, 333"]),
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        assert response.json()["data"]["requestedNumberCount"] == 3

    async def test_buttons_are_returned_nested(
        self, client, make_account, auth_headers, campaign_form
    ):
        user = await make_account(balance=10)

        response = await client.post(
            "/campaigns",
            data=campaign_form(
                ["111"],
                phoneButtonText="Call us",
                phoneButtonNumber="+91 9876 543210",
                linkButtonText="Shop now",
                linkButtonUrl="https://shop.example.com",
            ),
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["phoneButton"] == {"text": "Call us", "number": "+91 9876 543210"}
        assert data["linkButton"] == {"text": "Shop now", "url": "https://shop.example.com"}

    async def test_admin_is_not_charged(self, client, admin_account, auth_headers, campaign_form):
        response = await client.post(
            "/campaigns",
            data=campaign_form([str(n) for n in range(500)]),
            headers=auth_headers(admin_account),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["actualNumberCount"] == 500
        assert data["pointsDeducted"] == 0
        assert data["remainingBalance"] == 0

    async def test_reseller_pays_from_own_balance(
        self, client, make_account, auth_headers, campaign_form
    ):
        reseller = await make_account(role=AccountRole.RESELLER, balance=5)

        response = await client.post(
            "/campaigns", data=campaign_form(["1", "2"]), headers=auth_headers(reseller)
        )

        assert response.status_code == 201
        assert response.json()["data"]["remainingBalance"] == 3


class TestCreateCampaignRefused:

    async def test_zero_balance(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=0)

        response = await client.post(
            "/campaigns", data=campaign_form(["1", "2", "3"]), headers=auth_headers(user)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_type"] == "insufficient_balance"
        assert body["requested"] == 3
        assert body["available"] == 0

        listing = await client.get("/campaigns", headers=auth_headers(user))
        assert listing.json() == []

    async def test_missing_campaign_name(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=10)
        form = campaign_form(["1"])
        del form["campaignName"]

        response = await client.post("/campaigns", data=form, headers=auth_headers(user))

        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_argument"
        assert "required" in response.json()["detail"]

    async def test_no_numbers(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=10)

        response = await client.post(
            "/campaigns", data=campaign_form([" , "]), headers=auth_headers(user)
        )

        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_argument"

    async def test_requires_authentication(self, client, campaign_form):
        response = await client.post("/campaigns", data=campaign_form(["1"]))
        assert response.status_code == 401

    async def test_persistence_failure_rolls_back(
        self, client, make_account, auth_headers, campaign_form, monkeypatch
    ):
        user = await make_account(balance=10)

        async def broken_append(*args, **kwargs):
            raise SQLAlchemyError("journal unavailable")

        monkeypatch.setattr(journal_service, "append_entry", broken_append)

        response = await client.post(
            "/campaigns", data=campaign_form(["1", "2", "3"]), headers=auth_headers(user)
        )

        assert response.status_code == 500
        assert response.json()["error_type"] == "persistence_failure"

        me = (await client.get("/accounts/me", headers=auth_headers(user))).json()
        assert me["balance"] == 10
        assert me["totalCampaigns"] == 0
        assert me["campaignIds"] == []


class TestCampaignMedia:

    async def test_image_is_stored_and_described(
        self, client, make_account, auth_headers, campaign_form
    ):
        user = await make_account(balance=10)

        response = await client.post(
            "/campaigns",
            data=campaign_form(["1"]),
            files={"file": ("banner.png", PNG_BYTES, "image/png")},
            headers=auth_headers(user),
        )

        assert response.status_code == 201, response.text
        media = response.json()["data"]["media"]
        assert media["type"] == "image"
        assert media["mimeType"] == "image/png"
        assert media["size"] == len(PNG_BYTES)
        assert media["url"] == f"{settings.MEDIA_URL_PREFIX}/{media['filename']}"
        assert (Path(settings.MEDIA_ROOT) / media["filename"]).read_bytes() == PNG_BYTES

    async def test_disallowed_file_type(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=10)

        response = await client.post(
            "/campaigns",
            data=campaign_form(["1"]),
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

        me = (await client.get("/accounts/me", headers=auth_headers(user))).json()
        assert me["balance"] == 10
        assert me["campaignIds"] == []


    async def test_failed_commit_removes_stored_file(
        self, client, make_account, auth_headers, campaign_form, monkeypatch
    ):
        user = await make_account(balance=10)
        media_root = Path(settings.MEDIA_ROOT)
        files_before = set(media_root.iterdir())

        async def broken_commit(self):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(AsyncSession, "commit", broken_commit)

        response = await client.post(
            "/campaigns",
            data=campaign_form(["1"]),
            files={"file": ("banner.png", PNG_BYTES, "image/png")},
            headers=auth_headers(user),
        )
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json()["error_type"] == "persistence_failure"
        assert set(media_root.iterdir()) == files_before

        me = (await client.get("/accounts/me", headers=auth_headers(user))).json()
        assert me["balance"] == 10
        assert me["campaignIds"] == []


class TestReadCampaigns:

    async def test_list_own_campaigns(self, client, make_account, auth_headers, campaign_form):
        user = await make_account(balance=10)
        for name in ("First Blast", "Second Blast"):
            await client.post(
                "/campaigns",
                data=campaign_form(["1"], campaignName=name),
                headers=auth_headers(user),
            )

        response = await client.get("/campaigns", headers=auth_headers(user))

        assert response.status_code == 200
        assert [c["campaignName"] for c in response.json()] == ["Second Blast", "First Blast"]

    async def test_other_accounts_campaign_is_not_found(
        self, client, make_account, auth_headers, campaign_form
    ):
        owner = await make_account(balance=10)
        stranger = await make_account(balance=10)
        created = await client.post(
            "/campaigns", data=campaign_form(["1"]), headers=auth_headers(owner)
        )
        campaign_id = created.json()["data"]["campaignId"]

        response = await client.get(f"/campaigns/{campaign_id}", headers=auth_headers(stranger))

        assert response.status_code == 404
        assert response.json()["error_type"] == "campaign_not_found"

    async def test_campaign_shows_up_on_account(
        self, client, make_account, auth_headers, campaign_form
    ):
        user = await make_account(balance=10)
        created = (
            await client.post("/campaigns", data=campaign_form(["1", "2"]), headers=auth_headers(user))
        ).json()["data"]

        me = (await client.get("/accounts/me", headers=auth_headers(user))).json()

        assert me["campaignIds"] == [created["campaignId"]]
        assert created["transactionId"] in me["transactionIds"]
        assert me["totalCampaigns"] == 1
        assert me["balance"] == 8
