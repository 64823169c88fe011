"""Create a user account from the command line."""
import asyncio
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from timetracker.config import settings
from timetracker.exceptions import InvalidInputError
from timetracker.services.auth_service import AuthService


async def create_user(email: str, name: str, password: str) -> int:
    """Register the user in the configured database; returns an exit code."""
    client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
    try:
        service = AuthService(client[settings.mongodb_db_name])
        user = await service.register_user(email=email, password=password, name=name)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    print(f"Created user {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python scripts/create_user.py <email> <name>")
        sys.exit(1)

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Error: passwords do not match", file=sys.stderr)
        sys.exit(1)

    sys.exit(asyncio.run(create_user(sys.argv[1], sys.argv[2], password)))
