#!/usr/bin/env python3
"""One-time script to create the root admin account. Run on the server.

Usage:
    python demo/create_admin.py admin@bulkreach.example 'S3cret-pass' "BulkReach Ops"
"""
import asyncio
import sys

from bulkreach.database import AsyncSessionLocal, engine, init_models
from bulkreach.models.ledger_account import AccountRole
from bulkreach.services import account_service


async def create_admin(email: str, password: str, company_name: str):
    await init_models()
    async with AsyncSessionLocal() as s:
        account = await account_service.provision_account(
            s,
            provisioner=None,
            email=email,
            password=password,
            company_name=company_name,
            role=AccountRole.ADMIN,
        )
        await s.commit()
        print(f"Admin account created: {account.id}")
    await engine.dispose()

if __name__ == "__main__":
    if len(sys.argv) != 4:
        sys.exit(__doc__)
    asyncio.run(create_admin(*sys.argv[1:]))
