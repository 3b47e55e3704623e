from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from db.json_file import JsonFileStorage
from db.record_store import IndexedRecordStore
from settings.config import Settings


@dataclass
class UserRecord:
    id: int
    username: str
    password_hash: str
    created_at: str

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "UserRecord":
        return cls(
            id=int(row["id"]),
            username=row["username"],
            password_hash=row.get("password", ""),
            created_at=row.get("createdAt", ""),
        )


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UserRepo:
    def __init__(self, store: IndexedRecordStore) -> None:
        self._store = store

    def init(self) -> None:
        self._store.init()

    def flush(self) -> bool:
        return self._store.flush()

    def close(self) -> None:
        self._store.close()

    def get_by_id(self, user_id: Any) -> Optional[UserRecord]:
        row = self._store.get_by_id(user_id)
        return UserRecord.from_dict(row) if row else None

    def get_by_username(self, username: str) -> Optional[UserRecord]:
        row = self._store.get_by_key(username)
        return UserRecord.from_dict(row) if row else None

    def username_exists(self, username: str) -> bool:
        return self._store.exists(username)

    def create(self, username: str, password_hash: str) -> UserRecord:
        # Raises DuplicateKeyError on a case-insensitive username clash.
        row = self._store.add(
            {
                "username": username,
                "password": password_hash,
                "createdAt": _utc_now_iso(),
            }
        )
        return UserRecord.from_dict(row)

    def count(self) -> int:
        return self._store.count()


def create_user_repo(settings: Settings) -> UserRepo:
    store = IndexedRecordStore(
        JsonFileStorage(settings.users_file),
        natural_key="username",
        order_field="createdAt",
        debounce_seconds=settings.save_debounce_seconds,
        retry_attempts=settings.save_retry_attempts,
        retry_backoff_seconds=settings.save_retry_backoff_seconds,
        name="users",
    )
    return UserRepo(store)
