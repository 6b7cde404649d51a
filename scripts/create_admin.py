"""Create an admin account, or promote an existing user to admin.

Registration through the API always yields role "user"; this is the only way
to obtain an admin.

    python scripts/create_admin.py admin@example.com --name "Ops" --password s3cret!
"""
import argparse
import asyncio
import getpass
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

load_dotenv()

from assetvault.core.config import Settings
from assetvault.core.db import Database
from assetvault.core.security import hash_password, ROLE_ADMIN
from assetvault.modules.users.repository import UserRepository


async def main(email: str, name: str | None, password: str | None) -> int:
    settings = Settings()
    db = Database(settings)
    await db.init_models()
    try:
        async with db.session() as s:
            repo = UserRepository(s)
            user = await repo.get_by_email(email.lower())
            if user:
                user.role = ROLE_ADMIN
                print(f"Promoting existing user {user.email} to admin")
            else:
                if not password:
                    password = getpass.getpass("Password for new admin: ")
                if len(password) < 6:
                    print("Password must be at least 6 characters", file=sys.stderr)
                    return 1
                user = await repo.create(name=name, email=email.lower(), password_hash=hash_password(password), role=ROLE_ADMIN)
                print(f"Created admin {user.email}")
            await s.commit()
    finally:
        await db.dispose()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    parser.add_argument("--password", default=None, help="prompted for when omitted")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.email, args.name, args.password)))
