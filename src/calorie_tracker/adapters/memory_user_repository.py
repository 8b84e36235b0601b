"""In-memory user repository used when no database is configured."""

import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from calorie_tracker.domain.users import UserRecord
from calorie_tracker.errors import DuplicateUsernameError, NotFoundError
from calorie_tracker.services.users import UserRepository


@dataclass
class InMemoryUserRepository(UserRepository):
    """Process-local user storage keyed by id."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user with the given normalized username."""
        with self._lock:
            return self._find_by_username(username)

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user by id."""
        with self._lock:
            return self.users.get(user_id)

    def create_user(
        self, username: str, password_hash: str, nickname: str
    ) -> UserRecord:
        """Insert a user unless the username is taken."""
        with self._lock:
            if self._find_by_username(username) is not None:
                raise DuplicateUsernameError
            now = datetime.now(tz=UTC)
            user = UserRecord(
                id=uuid4(),
                username=username,
                password_hash=password_hash,
                nickname=nickname,
                created_at=now,
                updated_at=now,
            )
            self.users[user.id] = user
            return user

    def update_password_hash(self, user_id: UUID, password_hash: str) -> UserRecord:
        """Replace the password hash for a user."""
        with self._lock:
            current = self.users.get(user_id)
            if current is None:
                raise NotFoundError("User not found")
            updated = replace(
                current, password_hash=password_hash, updated_at=datetime.now(tz=UTC)
            )
            self.users[user_id] = updated
            return updated

    def delete_user(self, user_id: UUID) -> None:
        """Remove a user if present."""
        with self._lock:
            self.users.pop(user_id, None)

    def _find_by_username(self, username: str) -> UserRecord | None:
        for user in self.users.values():
            if user.username == username:
                return user
        return None
