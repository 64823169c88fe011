"""Authentication service - registration, login and user lookup."""
import logging
from datetime import datetime, timezone

from pymongo.errors import DuplicateKeyError

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.user import User
from timetracker.utils.auth import create_access_token, hash_password, verify_password
from timetracker.utils.ids import to_object_id

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class InvalidCredentialsError(ValueError):
    """Login failed."""


class AuthService:
    """Service for handling user authentication."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]

    def _doc_to_user(self, doc: dict) -> User:
        return User(
            _id=str(doc["_id"]),
            email=doc["email"],
            name=doc["name"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def register_user(self, email: str, password: str, name: str) -> User:
        """
        Register a new user.

        Args:
            email: User email address (stored lower-case)
            password: Plain text password
            name: User's name

        Returns:
            User object (without password)

        Raises:
            InvalidInputError: If the email is taken or the password too short
        """
        email = email.strip().lower()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        existing = await self.users.find_one({"email": email})
        if existing:
            raise InvalidInputError("Email already registered")

        now = datetime.now(timezone.utc)
        user_doc = {
            "email": email,
            "hashed_password": hash_password(password),
            "name": name.strip(),
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.users.insert_one(user_doc)
        except DuplicateKeyError:
            raise InvalidInputError("Email already registered")
        user_doc["_id"] = result.inserted_id
        logger.info("Registered user %s", user_doc["_id"])

        return self._doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> str:
        """
        Login user and return JWT token.

        Raises:
            InvalidCredentialsError: If credentials are invalid
        """
        user_doc = await self.users.find_one({"email": email.strip().lower()})
        if not user_doc or not verify_password(password, user_doc["hashed_password"]):
            logger.warning("Failed login for %s", email)
            raise InvalidCredentialsError("Invalid email or password")

        return create_access_token(user_id=str(user_doc["_id"]))

    async def get_user_by_id(self, user_id: str) -> User:
        """Get user by ID (NotFoundError if missing)."""
        object_id = to_object_id(user_id)
        user_doc = await self.users.find_one({"_id": object_id}) if object_id else None
        if not user_doc:
            raise NotFoundError("User not found")

        return self._doc_to_user(user_doc)
