from pathlib import Path

from settings.config import Settings


def test_defaults(monkeypatch):
    for name in (
        "DATA_DIR",
        "EMPLOYEES_FILE",
        "USERS_FILE",
        "SAVE_DEBOUNCE_MS",
        "AUTH_OVERRIDE_ENABLED",
        "AUTH_OVERRIDE_PASSWORD",
        "USER_COOKIE_NAME",
        "ADMIN_COOKIE_NAME",
        "SESSION_TTL_SECONDS",
        "PASSWORD_HASH_ROUNDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.employees_file == Path("data") / "employees.json"
    assert settings.users_file == Path("data") / "users.json"
    assert settings.save_debounce_seconds == 0.1
    assert settings.password_hash_rounds == 10
    assert settings.session_ttl_seconds == 86400
    assert settings.user_cookie_name == "userToken"
    assert settings.admin_cookie_name == "adminToken"
    assert settings.auth_override_enabled is False
    assert settings.auth_override_password_active is None


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("USERS_FILE", str(tmp_path / "accounts.json"))
    monkeypatch.delenv("EMPLOYEES_FILE", raising=False)
    monkeypatch.setenv("SAVE_DEBOUNCE_MS", "250")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    settings = Settings()

    assert settings.employees_file == tmp_path / "employees.json"
    assert settings.users_file == tmp_path / "accounts.json"
    assert settings.save_debounce_seconds == 0.25
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_override_credential_needs_flag_and_password(monkeypatch):
    monkeypatch.setenv("AUTH_OVERRIDE_PASSWORD", "let-me-in")
    monkeypatch.setenv("AUTH_OVERRIDE_ENABLED", "false")
    assert Settings().auth_override_password_active is None

    monkeypatch.setenv("AUTH_OVERRIDE_ENABLED", "yes")
    assert Settings().auth_override_password_active == "let-me-in"
