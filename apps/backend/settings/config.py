from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    data_dir: Path
    employees_file: Path
    users_file: Path
    save_debounce_seconds: float
    save_retry_attempts: int
    save_retry_backoff_seconds: float
    password_hash_rounds: int
    auth_override_enabled: bool
    auth_override_password: str
    admin_username: str
    admin_password: str
    session_secret: str
    session_algorithm: str
    session_ttl_seconds: int
    user_cookie_name: str
    admin_cookie_name: str
    cookie_secure: bool
    cookie_samesite: str
    cors_origins: list[str]
    port: int
    log_level: str
    log_file: str

    def __init__(self) -> None:
        self.data_dir = Path(_get_env("DATA_DIR", "data"))
        self.employees_file = Path(_get_env("EMPLOYEES_FILE", str(self.data_dir / "employees.json")))
        self.users_file = Path(_get_env("USERS_FILE", str(self.data_dir / "users.json")))
        self.save_debounce_seconds = _get_float("SAVE_DEBOUNCE_MS", 100) / 1000.0
        self.save_retry_attempts = _get_int("SAVE_RETRY_ATTEMPTS", 3)
        self.save_retry_backoff_seconds = _get_float("SAVE_RETRY_BACKOFF_MS", 500) / 1000.0
        self.password_hash_rounds = _get_int("PASSWORD_HASH_ROUNDS", 10)
        # Test-mode login bypass. Must stay off outside of test deployments.
        self.auth_override_enabled = _get_bool("AUTH_OVERRIDE_ENABLED", False)
        self.auth_override_password = _get_env("AUTH_OVERRIDE_PASSWORD", "")
        self.admin_username = _get_env("ADMIN_USERNAME", "admin")
        self.admin_password = _get_env("ADMIN_PASSWORD", "")
        self.session_secret = _get_env("SESSION_SECRET", "change-me")
        self.session_algorithm = _get_env("SESSION_ALG", "HS256")
        self.session_ttl_seconds = _get_int("SESSION_TTL_SECONDS", 60 * 60 * 24)
        self.user_cookie_name = _get_env("USER_COOKIE_NAME", "userToken")
        self.admin_cookie_name = _get_env("ADMIN_COOKIE_NAME", "adminToken")
        self.cookie_secure = _get_bool("COOKIE_SECURE", False)
        self.cookie_samesite = _get_env("COOKIE_SAMESITE", "lax")
        origins = _get_env("CORS_ORIGINS", "*")
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
        self.port = _get_int("PORT", 3000)
        self.log_level = _get_env("LOG_LEVEL", "INFO").upper()
        self.log_file = _get_env("LOG_FILE", "")

    @property
    def auth_override_password_active(self) -> str | None:
        if not self.auth_override_enabled or not self.auth_override_password:
            return None
        return self.auth_override_password


settings = Settings()
