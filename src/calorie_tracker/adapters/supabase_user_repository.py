"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from calorie_tracker.domain.users import UserRecord
from calorie_tracker.errors import DuplicateUsernameError
from calorie_tracker.services.users import UserRepository

_COLUMNS = "id, username, password_hash, nickname, created_at, updated_at"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user for a normalized username, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("username", username)
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user by id, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def create_user(
        self, username: str, password_hash: str, nickname: str
    ) -> UserRecord:
        """Insert a user row and return it."""
        try:
            response = (
                self.client.table("users")
                .insert(
                    {
                        "username": username,
                        "password_hash": password_hash,
                        "nickname": nickname,
                    }
                )
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateUsernameError from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _parse_row(response.data[0])

    def update_password_hash(self, user_id: UUID, password_hash: str) -> UserRecord:
        """Store a new password hash and bump updated_at."""
        response = (
            self.client.table("users")
            .update(
                {
                    "password_hash": password_hash,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update user password in Supabase")
        return _parse_row(response.data[0])

    def delete_user(self, user_id: UUID) -> None:
        """Delete a user row."""
        self.client.table("users").delete().eq("id", str(user_id)).execute()


def _parse_row(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        username=str(row["username"]),
        password_hash=str(row["password_hash"]),
        nickname=str(row["nickname"]),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(tz=UTC)
