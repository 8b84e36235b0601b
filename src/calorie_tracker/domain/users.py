"""Domain models for user accounts."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    username: str
    password_hash: str
    nickname: str
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, object]:
        """Return a client-safe representation without the password hash."""
        return {
            "id": str(self.id),
            "username": self.username,
            "nickname": self.nickname,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
