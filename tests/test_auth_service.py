import json

import pytest

from db.record_store import DuplicateKeyError
from db.user_repo import UserRepo, create_user_repo
from services.auth_service import AuthService, PublicUser, create_auth_service


@pytest.fixture
def user_repo(app_settings) -> UserRepo:
    repo = create_user_repo(app_settings)
    repo.init()
    yield repo
    repo.close()


@pytest.fixture
def auth(user_repo) -> AuthService:
    return AuthService(user_repo, rounds=4, admin_username="admin", admin_password="s3cret-admin")


def test_register_hashes_password(auth, user_repo, app_settings):
    user = auth.register("bob", "hunter22")

    assert user == PublicUser(id=1, username="bob")
    record = user_repo.get_by_username("BOB")
    assert record.password_hash != "hunter22"
    assert record.password_hash.startswith("$2")
    assert record.created_at.endswith("Z")

    user_repo.flush()
    rows = json.loads(app_settings.users_file.read_text(encoding="utf-8"))
    assert set(rows[0]) == {"id", "username", "password", "createdAt"}
    assert "hunter22" not in app_settings.users_file.read_text(encoding="utf-8")


def test_register_duplicate_username(auth):
    auth.register("bob", "hunter22")

    with pytest.raises(DuplicateKeyError) as excinfo:
        auth.register("BoB", "another-pass")
    assert str(excinfo.value) == "Username already exists"


def test_authenticate(auth):
    registered = auth.register("bob", "hunter22")

    assert auth.authenticate("bob", "hunter22") == registered
    assert auth.authenticate("BOB", "hunter22") == registered


def test_wrong_password_and_unknown_user_look_the_same(auth):
    auth.register("bob", "hunter22")

    wrong_password = auth.authenticate("bob", "wrongpass")
    unknown_user = auth.authenticate("nosuchuser", "anything")

    assert wrong_password is None
    assert unknown_user is None


def test_override_disabled_by_default(app_settings, user_repo):
    auth = create_auth_service(user_repo, app_settings)
    auth.register("bob", "hunter22")

    assert not auth.override_enabled
    assert auth.authenticate("bob", "") is None


def test_override_requires_a_password(app_settings, user_repo, monkeypatch):
    monkeypatch.setattr(app_settings, "auth_override_enabled", True)
    monkeypatch.setattr(app_settings, "auth_override_password", "")

    assert not create_auth_service(user_repo, app_settings).override_enabled


def test_override_when_enabled(app_settings, user_repo, monkeypatch):
    monkeypatch.setattr(app_settings, "auth_override_enabled", True)
    monkeypatch.setattr(app_settings, "auth_override_password", "let-me-in")
    auth = create_auth_service(user_repo, app_settings)
    registered = auth.register("bob", "hunter22")

    assert auth.override_enabled
    assert auth.authenticate("bob", "let-me-in") == registered
    assert auth.authenticate("nosuchuser", "let-me-in") is None
    assert auth.authenticate("bob", "hunter22") == registered


def test_unreadable_hash_fails_closed(auth, user_repo):
    user_repo.create("legacy", "not-a-bcrypt-hash")

    assert auth.authenticate("legacy", "whatever") is None


def test_get_user(auth):
    registered = auth.register("bob", "hunter22")

    assert auth.get_user(registered.id) == registered
    assert auth.get_user(str(registered.id)) == registered
    assert auth.get_user(999) is None


def test_check_admin(auth):
    assert auth.check_admin("admin", "s3cret-admin")
    assert not auth.check_admin("admin", "wrong")
    assert not auth.check_admin("root", "s3cret-admin")


def test_admin_login_disabled_without_password(user_repo):
    auth = AuthService(user_repo, rounds=4, admin_password="")

    assert not auth.check_admin("admin", "")
