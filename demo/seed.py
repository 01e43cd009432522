#!/usr/bin/env python3
"""
Demo seed script — populates a running API with a sample reseller tree.

!! NOT FOR PRODUCTION !!
Creates accounts with known passwords. Intended ONLY for local demos and
frontend development. The root admin must exist first
(see demo/create_admin.py).

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py --admin-email admin@bulkreach.example --admin-password '...'

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000 ...

Accounts created:
    ┌──────────────────────────────┬───────────────────┬──────────┬────────┐
    │ Email                        │ Password          │ Role     │ Points │
    ├──────────────────────────────┼───────────────────┼──────────┼────────┤
    │ reseller@northwind.example   │ ResellerDemo123!  │ reseller │  5000  │
    │ shop@corner.example          │ ShopDemo123!      │ user     │   250  │
    │ bakery@crumbs.example        │ BakeryDemo123!    │ user     │    12  │
    └──────────────────────────────┴───────────────────┴──────────┴────────┘
"""

import argparse
import asyncio
import random
import sys

import httpx

BASE_URL = "http://localhost:8000"

RESELLER = {
    "email": "reseller@northwind.example",
    "password": "ResellerDemo123!",
    "companyName": "Northwind Messaging",
    "role": "reseller",
    "points": 5000,
}

USERS = [
    {
        "email": "shop@corner.example",
        "password": "ShopDemo123!",
        "companyName": "Corner Shop",
        "role": "user",
        "points": 250,
    },
    {
        "email": "bakery@crumbs.example",
        "password": "BakeryDemo123!",
        "companyName": "Crumbs Bakery",
        "role": "user",
        # Less than a campaign's worth, so the dashboard shows partial funding
        "points": 12,
    },
]

CAMPAIGN_NAMES = [
    "Weekend Sale", "New Arrivals", "Loyalty Rewards", "Holiday Hours",
    "Flash Discount", "Grand Opening",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def login(client: httpx.AsyncClient, email: str, password: str) -> str:
    resp = await client.post(f"{BASE_URL}/auth/login", json={"email": email, "password": password})
    resp.raise_for_status()
    return resp.json()["token"]


async def provision(client: httpx.AsyncClient, token: str, account: dict) -> str:
    """Provision a sub-account and return its ID."""
    body = {k: account[k] for k in ("email", "password", "companyName", "role")}
    resp = await client.post(f"{BASE_URL}/accounts", json=body, headers=auth_header(token))
    resp.raise_for_status()
    return resp.json()["id"]


async def credit(client: httpx.AsyncClient, token: str, receiver_id: str, amount: int) -> None:
    resp = await client.post(
        f"{BASE_URL}/transactions/credit",
        json={"receiverId": receiver_id, "amount": amount, "description": "Demo top-up"},
        headers=auth_header(token),
    )
    resp.raise_for_status()


async def create_campaign(client: httpx.AsyncClient, token: str, size: int) -> dict:
    numbers = [f"98{random.randint(10_000_000, 99_999_999)}" for _ in range(size)]
    resp = await client.post(
        f"{BASE_URL}/campaigns",
        data={
            "campaignName": random.choice(CAMPAIGN_NAMES),
            "message": "Visit us this week for exclusive offers!",
            "countryCode": "+91",
            "mobileNumbers": ",".join(numbers),
        },
        headers=auth_header(token),
    )
    return resp.json()


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

async def seed(admin_email: str, admin_password: str) -> None:
    async with httpx.AsyncClient(timeout=30) as client:
        print("Logging in as admin...")
        admin_token = await login(client, admin_email, admin_password)

        print("Creating reseller...")
        reseller_id = await provision(client, admin_token, RESELLER)
        await credit(client, admin_token, reseller_id, RESELLER["points"])
        log(f"{RESELLER['email']} ({RESELLER['points']} points)")

        reseller_token = await login(client, RESELLER["email"], RESELLER["password"])

        print("Creating users...")
        for user in USERS:
            user_id = await provision(client, reseller_token, user)
            await credit(client, reseller_token, user_id, user["points"])
            log(f"{user['email']} ({user['points']} points)")

        print("Running campaigns...")
        for user in USERS:
            token = await login(client, user["email"], user["password"])
            for _ in range(2):
                result = await create_campaign(client, token, random.randint(5, 40))
                log(f"{user['email']}: {result.get('message') or result.get('detail')}")

    print("Done.")


def main() -> None:
    global BASE_URL
    parser = argparse.ArgumentParser(description="Seed the BulkReach API with demo data")
    parser.add_argument("--base-url", default=BASE_URL)
    parser.add_argument("--admin-email", required=True)
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()
    BASE_URL = args.base_url.rstrip("/")

    try:
        asyncio.run(seed(args.admin_email, args.admin_password))
    except httpx.HTTPStatusError as exc:
        print(f"Request failed: {exc.response.status_code} {exc.response.text}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
