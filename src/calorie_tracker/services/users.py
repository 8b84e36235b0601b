"""User account business logic."""

import logging
import re
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

import bcrypt

from calorie_tracker.domain.users import UserRecord
from calorie_tracker.errors import AuthError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72
NICKNAME_MAX_LENGTH = 100
INVALID_CREDENTIALS = "Invalid username or password"

_USERNAME_PATTERN = re.compile(r"^[a-z0-9_]+$")


class UserRepository(Protocol):
    """Persistence interface for user accounts."""

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user with a normalized username, if present."""

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user by id, if present."""

    def create_user(
        self, username: str, password_hash: str, nickname: str
    ) -> UserRecord:
        """Create a user, raising DuplicateUsernameError on conflict."""

    def update_password_hash(self, user_id: UUID, password_hash: str) -> UserRecord:
        """Replace the stored password hash and return the updated user."""

    def delete_user(self, user_id: UUID) -> None:
        """Delete a user record."""


def normalize_username(username: str) -> str:
    """Trim and lowercase a username for storage and lookup."""
    return username.strip().lower()


def validate_username(username: str) -> str:
    """Return the normalized username or raise ValidationError."""
    normalized = normalize_username(username)
    if not normalized:
        raise ValidationError("Username is required")
    if len(normalized) < USERNAME_MIN_LENGTH:
        raise ValidationError("Username must be at least 3 characters long")
    if len(normalized) > USERNAME_MAX_LENGTH:
        raise ValidationError("Username cannot exceed 50 characters")
    if not _USERNAME_PATTERN.match(normalized):
        raise ValidationError(
            "Username can only contain letters, numbers and underscores"
        )
    return normalized


def validate_password(password: str) -> str:
    """Return the password unchanged or raise ValidationError."""
    if not password:
        raise ValidationError("Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError("Password must be at least 6 characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError("Password cannot exceed 72 bytes")
    return password


def validate_nickname(nickname: str) -> str:
    """Return the trimmed nickname or raise ValidationError."""
    cleaned = nickname.strip()
    if not cleaned:
        raise ValidationError("Nickname is required")
    if len(cleaned) > NICKNAME_MAX_LENGTH:
        raise ValidationError("Nickname cannot exceed 100 characters")
    return cleaned


def hash_password(password: str, rounds: int = 12) -> str:
    """Derive a salted bcrypt hash for a plaintext password."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Compare a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class UserService:
    """Application service for registration and authentication."""

    repository: UserRepository
    rounds: int = 12
    _dummy_hash: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._dummy_hash = hash_password("not-a-real-password", self.rounds)

    def register(self, username: str, password: str, nickname: str) -> UserRecord:
        """Validate fields, hash the password and persist a new user."""
        normalized = validate_username(username)
        validate_password(password)
        cleaned_nickname = validate_nickname(nickname)
        if self.repository.get_by_username(normalized) is not None:
            raise ValidationError("Username already exists")
        user = self.repository.create_user(
            username=normalized,
            password_hash=hash_password(password, self.rounds),
            nickname=cleaned_nickname,
        )
        logger.info("Registered user", extra={"user_id": str(user.id)})
        return user

    def verify_credentials(self, username: str, password: str) -> UserRecord:
        """Return the user for valid credentials or raise AuthError."""
        user = self.repository.get_by_username(normalize_username(username))
        if user is None:
            # Keep the bcrypt cost so unknown usernames take as long as known ones.
            verify_password(password, self._dummy_hash)
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)
        return user

    def get_user(self, user_id: UUID) -> UserRecord:
        """Return a user by id or raise NotFoundError."""
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> UserRecord:
        """Replace a user's password after checking the current one."""
        user = self.get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)
        validate_password(new_password)
        return self.repository.update_password_hash(
            user.id, hash_password(new_password, self.rounds)
        )

    def delete_user(self, user_id: UUID) -> None:
        """Delete a user account."""
        self.get_user(user_id)
        self.repository.delete_user(user_id)
        logger.info("Deleted user", extra={"user_id": str(user_id)})
