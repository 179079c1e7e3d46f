#!/usr/bin/env python3
"""
Admin Provisioning Script

Creates (or promotes) an admin account directly in the database and prints a
bearer token for it. The API only verifies tokens; this script is where they
are issued.

Usage:
    python scripts/provision_admin.py admin@example.com

    Or using ADMIN_EMAIL from the environment:
    python scripts/provision_admin.py

    Issue a short-lived token:
    python scripts/provision_admin.py admin@example.com --expires-minutes 60
"""
import argparse
import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

# Add parent directory to path to import cryptosignals modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from cryptosignals.core.auth import create_access_token
from cryptosignals.core.config import settings
from cryptosignals.core.database import AsyncSessionLocal, init_db
from cryptosignals.models import User


async def provision_admin(email: str) -> User:
    """
    Create an admin user, or promote and reactivate an existing account.

    Args:
        email: Admin email address

    Returns:
        The admin User
    """
    await init_db()

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(email=email, role="admin", is_active=True, subscription_tier="pro")
            db.add(user)
            print(f"✅ Created admin: {email}")
        else:
            user.role = "admin"
            user.is_active = True
            print(f"⚠️  User {email} already exists, promoted to admin")

        await db.commit()
        await db.refresh(user)
        return user


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Provision an admin account and issue a bearer token")
    parser.add_argument("email", nargs="?", help="Admin email (defaults to ADMIN_EMAIL)")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)"
    )
    args = parser.parse_args()

    email: Optional[str] = args.email or settings.admin_email
    if not email:
        print("❌ Error: pass an email or set ADMIN_EMAIL")
        sys.exit(1)

    user = asyncio.run(provision_admin(email))

    expires = timedelta(minutes=args.expires_minutes) if args.expires_minutes else None
    token = create_access_token({"sub": user.id, "role": user.role}, expires_delta=expires)

    print(f"   User ID: {user.id}")
    print(f"   Token: {token}")


if __name__ == "__main__":
    main()
