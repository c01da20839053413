"""
Access token issuing script

There is no login endpoint; use this to mint a bearer token for an existing
user during development.

Usage:
    python scripts/issue_token.py <email> [minutes]
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from storeapi.models.base import AsyncSessionLocal, close_db
from storeapi.services.user_service import UserService
from storeapi.utils.security import JWTManager


async def issue_token(email: str, minutes: int = None) -> bool:
    async with AsyncSessionLocal() as session:
        user = await UserService(session).get_user_by_email(email)

        if not user:
            print(f"[ERROR] User not found: {email}")
            return False
        if not user.is_active:
            print(f"[ERROR] User is not active: {email} ({user.status})")
            return False

        token = JWTManager.create_access_token(
            {"sub": str(user.id), "role": user.role},
            expires_delta=timedelta(minutes=minutes) if minutes else None,
        )

    print(f"[INFO] {user.email} ({user.role}), user id {user.id}")
    print(token)
    return True


async def main():
    if len(sys.argv) < 2:
        print("\n[Usage]")
        print("  python scripts/issue_token.py <email> [minutes]")
        print("\n[Example]")
        print("  python scripts/issue_token.py customer1@example.com 120")
        return

    minutes = int(sys.argv[2]) if len(sys.argv) > 2 else None
    try:
        if not await issue_token(sys.argv[1], minutes):
            sys.exit(1)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
