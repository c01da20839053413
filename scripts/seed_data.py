"""
Database seed script

Creates demo geography, users and addresses for local development.

Usage:
    python scripts/seed_data.py           # seed an empty database
    python scripts/seed_data.py --reset   # drop and recreate all tables first
"""

import asyncio
import sys
import uuid
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.config import get_settings
from storeapi.middleware.authorization import AccessContext
from storeapi.models.base import AsyncSessionLocal, drop_db, init_db, close_db
from storeapi.models.user import User, UserRole
from storeapi.services.address_service import AddressService
from storeapi.services.geography_service import GeographyService
from storeapi.services.user_service import UserService

settings = get_settings()

GEOGRAPHY = {
    ("Karnataka", "KA"): {
        "Bengaluru": [("Indiranagar", "560038"), ("Koramangala", "560034"), ("Whitefield", "560066")],
        "Mysuru": [("Gokulam", "570002")],
    },
    ("Maharashtra", "MH"): {
        "Mumbai": [("Andheri West", "400058"), ("Bandra West", "400050")],
        "Pune": [("Kothrud", "411038")],
    },
    ("Tamil Nadu", "TN"): {
        "Chennai": [("Adyar", "600020"), ("T. Nagar", "600017")],
    },
}

USERS = [
    {"email": "customer1@example.com", "name": "Asha Rao", "role": UserRole.CUSTOMER},
    {"email": "customer2@example.com", "name": "Rahul Mehta", "role": UserRole.CUSTOMER},
    {"email": "admin@example.com", "name": "Store Admin", "role": UserRole.ADMIN},
]


async def create_geography(session: AsyncSession, context: AccessContext) -> dict:
    """Create states, cities and localities; returns locality name -> id"""
    print("[INFO] Creating geography...")
    service = GeographyService(session, context)
    localities = {}

    for (state_name, code), cities in GEOGRAPHY.items():
        state = await service.create_state(name=state_name, code=code)
        for city_name, city_localities in cities.items():
            city = await service.create_city(name=city_name, state_id=uuid.UUID(state["id"]))
            for locality_name, pincode in city_localities:
                locality = await service.create_locality(
                    name=locality_name, pincode=pincode, city_id=uuid.UUID(city["id"])
                )
                localities[locality_name] = locality["id"]

    print(f"[SUCCESS] {len(localities)} localities created")
    return localities


async def create_users(session: AsyncSession) -> dict:
    """Create demo users; returns email -> User"""
    print("[INFO] Creating users...")
    service = UserService(session)
    users = {}

    for data in USERS:
        user = await service.create_user(email=data["email"], name=data["name"], role=data["role"])
        users[user.email] = user

    print(f"[SUCCESS] {len(users)} users created")
    return users


async def create_addresses(
    session: AsyncSession, context: AccessContext, users: dict, localities: dict
) -> None:
    """Give the demo customers a few addresses each"""
    print("[INFO] Creating addresses...")
    service = AddressService(session, context)

    samples = {
        "customer1@example.com": [
            ("12, 100 Feet Road", "Indiranagar", "HOME", False),
            ("Tower B, Prestige Tech Park", "Whitefield", "WORK", False),
            ("Flat 3A, Sea Breeze Apartments", "Bandra West", "OTHER", True),
        ],
        "customer2@example.com": [
            ("22 Karve Road", "Kothrud", "HOME", False),
        ],
    }

    count = 0
    for email, addresses in samples.items():
        user = users[email]
        for line1, locality_name, address_type, is_default in addresses:
            await service.create_address(
                user.id,
                address_line1=line1,
                landmark="Metro station" if address_type == "WORK" else None,
                locality_id=uuid.UUID(localities[locality_name]),
                is_default=is_default,
                contact_name=user.name,
                contact_phone="9876543210",
                address_type=address_type,
            )
            count += 1

    print(f"[SUCCESS] {count} addresses created")


async def main():
    print("[START] Seeding database")
    print(f"[INFO] Database: {settings.DATABASE_URL}")

    reset = "--reset" in sys.argv[1:]

    try:
        if reset:
            print("[INFO] Dropping existing tables...")
            await drop_db()
        await init_db()
        print("[SUCCESS] Tables created/verified")

        context = AccessContext.system()
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(User).limit(1))
            if result.scalar():
                print("[SKIP] Database already has data; rerun with --reset to start over.")
                return

            localities = await create_geography(session, context)
            users = await create_users(session)
            await create_addresses(session, context, users, localities)

        print("[COMPLETE] Seed data created")
        print("\n[Demo accounts] (issue tokens with scripts/issue_token.py <email>)")
        for data in USERS:
            print(f"- {data['role'].value}: {data['email']}")

    except Exception as e:
        print(f"[ERROR] Seeding failed: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
