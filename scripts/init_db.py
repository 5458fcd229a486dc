#!/usr/bin/env python3
"""
Initialize MongoDB - ensure indexes and seed technician accounts

Safe to re-run: index creation is idempotent and users are only seeded
into an empty collection.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pymongo.errors import PyMongoError  # noqa: E402

from app.config import settings  # noqa: E402
from app.db.mongodb import mongodb  # noqa: E402
from app.services.auth_service import AuthService  # noqa: E402
from app.services.item_storage import MongoItemStorage  # noqa: E402
from app.services.user_storage import MongoUserStorage  # noqa: E402


async def init_db() -> int:
    print("🔧 Initializing MongoDB")
    print("=" * 60)

    print(f"\n📡 Connecting to {settings.MONGODB_DATABASE}...")
    try:
        await mongodb.connect()
    except PyMongoError as e:
        print(f"❌ MongoDB connection failed: {e}")
        return 1
    print("✅ MongoDB connected")

    try:
        items = MongoItemStorage(mongodb.db)
        users = MongoUserStorage(mongodb.db)

        print("\n📝 Ensuring indexes...")
        await items.create_indexes()
        await users.create_indexes()
        for collection in (items.collection, users.collection):
            indexes = await collection.list_indexes().to_list(length=None)
            print(f"   {collection.name}:")
            for idx in indexes:
                print(f"   - {idx['name']}: {dict(idx.get('key', {}))}")

        print("\n👤 Seeding technicians...")
        seeded = await AuthService(users).seed_users(settings)
        if seeded:
            print(f"✅ Created {seeded} accounts")
        else:
            print("   ℹ️  Users already exist, nothing to seed")
    finally:
        mongodb.close()

    print("\n✅ Done")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(init_db()))
