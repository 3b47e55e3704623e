from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from passlib.context import CryptContext

from db.user_repo import UserRecord
from settings.config import Settings


logger = logging.getLogger("backend.auth")


class UserRepo(Protocol):
    def get_by_id(self, user_id: Any) -> Optional[UserRecord]:
        ...

    def get_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    def create(self, username: str, password_hash: str) -> UserRecord:
        ...


@dataclass
class PublicUser:
    id: int
    username: str

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username}


def _public(record: UserRecord) -> PublicUser:
    return PublicUser(id=record.id, username=record.username)


def _same_secret(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


class AuthService:
    def __init__(
        self,
        repo: UserRepo,
        *,
        rounds: int = 10,
        override_password: Optional[str] = None,
        admin_username: str = "admin",
        admin_password: str = "",
    ) -> None:
        self._repo = repo
        self._password_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        # Test-mode bypass: when set, this password logs into any existing account.
        self._override_password = override_password or None
        self._admin_username = admin_username
        self._admin_password = admin_password

    @property
    def override_enabled(self) -> bool:
        return self._override_password is not None

    def register(self, username: str, password: str) -> PublicUser:
        password_hash = self._password_context.hash(password)
        record = self._repo.create(username, password_hash)
        logger.info("Registered user %s (id=%s)", record.username, record.id)
        return _public(record)

    def authenticate(self, username: str, password: str) -> Optional[PublicUser]:
        """Return the user for valid credentials, None otherwise.

        Unknown usernames and wrong passwords are indistinguishable.
        """
        if self._override_password is not None and _same_secret(password, self._override_password):
            record = self._repo.get_by_username(username)
            if record is None:
                return None
            logger.warning("Override credential used to log in as %s", record.username)
            return _public(record)

        record = self._repo.get_by_username(username)
        if record is None:
            self._password_context.dummy_verify()
            return None
        try:
            valid = self._password_context.verify(password, record.password_hash)
        except (ValueError, TypeError):
            logger.warning("Stored password hash for user id=%s is unreadable", record.id)
            return None
        if not valid:
            return None
        return _public(record)

    def get_user(self, user_id: Any) -> Optional[PublicUser]:
        record = self._repo.get_by_id(user_id)
        return _public(record) if record else None

    def check_admin(self, username: str, password: str) -> bool:
        if not self._admin_password:
            return False
        user_ok = _same_secret(username, self._admin_username)
        password_ok = _same_secret(password, self._admin_password)
        return user_ok and password_ok


def create_auth_service(repo: UserRepo, settings: Settings) -> AuthService:
    override = settings.auth_override_password_active
    if settings.auth_override_enabled and override is None:
        logger.warning("AUTH_OVERRIDE_ENABLED is set but AUTH_OVERRIDE_PASSWORD is empty; override stays off")
    if override is not None:
        logger.warning("Override credential is ENABLED; never run like this in production")
    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD is not configured; admin login is disabled")
    return AuthService(
        repo,
        rounds=settings.password_hash_rounds,
        override_password=override,
        admin_username=settings.admin_username,
        admin_password=settings.admin_password,
    )
