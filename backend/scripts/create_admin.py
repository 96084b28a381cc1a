"""
Promote an existing account to admin (or demote it back to client).

Admins can't be created through the API: register normally, then run this
from the backend/ directory:
    python scripts/create_admin.py someone@example.com
    python scripts/create_admin.py someone@example.com --role client
"""
import argparse
import asyncio
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import async_session, init_db
from domain.enums import UserRole
from domain.errors import NotFoundError
from services import auth_service


async def promote(email: str, role: UserRole) -> int:
    os.makedirs("data", exist_ok=True)
    await init_db()
    async with async_session() as db:
        try:
            await auth_service.set_role(db, email=email, role=role)
        except NotFoundError as e:
            print(f"❌ {e.message}")
            return 1
        await db.commit()
    print(f"✅ {email} is now {role.value}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Set a marketplace user's role")
    parser.add_argument("email")
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.ADMIN.value)
    args = parser.parse_args()
    return asyncio.run(promote(args.email, UserRole(args.role)))


if __name__ == "__main__":
    sys.exit(main())
