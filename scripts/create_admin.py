#!/usr/bin/env python3
"""
Script to promote an existing user to admin in MongoDB.
The HTTP API only lets admins create admins, so the first one is bootstrapped here.

Usage:
    python scripts/create_admin.py someone@example.com
"""

import asyncio
import sys
from motor.motor_asyncio import AsyncIOMotorClient

from mentora.core.config import settings
from mentora.db.mongodb import USERS
from mentora.models.mongo_models import UserRole


async def create_admin(email: str) -> bool:
    print("Connecting to MongoDB...")
    client = AsyncIOMotorClient(settings.mongo_url)
    db = client[settings.MONGO_DB]

    try:
        existing = await db[USERS].find_one({"email": email})
        if not existing:
            print(f"⚠️ No user with email {email}; sign in once before promoting.")
            return False

        if existing.get("role") == UserRole.ADMIN.value:
            print(f"⚠️ {email} is already an admin.")
            return True

        await db[USERS].update_one(
            {"_id": existing["_id"]},
            {"$set": {"role": UserRole.ADMIN.value}}
        )
        print(f"✅ User promoted to admin!")
        print(f"   Email: {email}")
        print(f"   User ID: {existing['_id']}")
        print(f"   Previous role: {existing.get('role')}")
        return True
    finally:
        client.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    ok = asyncio.run(create_admin(sys.argv[1]))
    sys.exit(0 if ok else 1)
