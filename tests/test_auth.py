import pytest

from fixit.core.auth import (
    DEFAULT_ACCOUNTS,
    DuplicateEmailError,
    InvalidCredentialsError,
    Registration,
    is_admin,
)
from fixit.core.local_store import CURRENT_USER_KEY, USERS_KEY


def test_register_returns_user_without_password(auth, storage):
    user = auth.register(Registration(name="Ana", email="ana@example.com", password="pw", telephone="555-0100"))

    assert not hasattr(user, "password")
    assert user.role == "user"
    assert user.telephone == "555-0100"
    stored = storage.get_item(USERS_KEY)
    assert stored[0]["id"] == user.user_id
    assert stored[0]["password"] == "pw"


def test_register_generates_distinct_ids(auth):
    first = auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))
    second = auth.register(Registration(name="Bia", email="bia@example.com", password="pw"))

    assert first.user_id != second.user_id
    assert len(first.user_id) == 26


def test_register_rejects_existing_email_regardless_of_other_fields(auth):
    auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))

    with pytest.raises(DuplicateEmailError, match="Email already registered"):
        auth.register(
            Registration(
                name="Someone Else",
                email="ana@example.com",
                password="different",
                department="rh",
                role="technician",
            )
        )
    assert len(auth.list_users()) == 1


def test_email_match_is_case_sensitive(auth):
    auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))
    auth.register(Registration(name="Ana", email="Ana@example.com", password="pw"))

    assert len(auth.list_users()) == 2


@pytest.mark.parametrize(
    "registration",
    [
        Registration(name=" ", email="x@example.com", password="pw"),
        Registration(name="X", email="", password="pw"),
        Registration(name="X", email="x@example.com", password=""),
        Registration(name="X", email="x@example.com", password="pw", role="root"),
    ],
)
def test_register_validates_input(auth, registration):
    with pytest.raises(ValueError):
        auth.register(registration)


def test_login_writes_session_without_password(auth, storage):
    created = auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))

    user = auth.login("ana@example.com", "pw")

    assert user == created
    assert auth.current_user() == created
    assert "password" not in storage.get_item(CURRENT_USER_KEY)


def test_login_failures_share_one_message(auth):
    auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        auth.login("ana@example.com", "nope")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        auth.login("nobody@example.com", "pw")

    assert str(wrong_password.value) == str(unknown_email.value) == "Invalid email or password"
    assert auth.current_user() is None


def test_logout_clears_session_and_is_idempotent(auth):
    auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))
    auth.login("ana@example.com", "pw")

    auth.logout()
    auth.logout()

    assert auth.current_user() is None


def test_current_user_ignores_corrupted_session(auth, storage):
    (storage.base_dir / f"{CURRENT_USER_KEY}.json").write_text("{oops", encoding="utf-8")

    assert auth.current_user() is None


def test_seed_defaults_creates_admin_and_technicians(auth):
    added = auth.seed_defaults()

    assert len(added) == len(DEFAULT_ACCOUNTS) == 5
    admin = auth.login("admin@fixit.com", "admin")
    assert admin.role == "admin"
    assert admin.department == "ti"
    assert admin.user_id.startswith("admin-")
    technicians = auth.list_technicians()
    assert sorted(tech.name for tech in technicians) == ["Caio", "Guilherme", "Gustavo", "Mariana"]
    assert all(tech.user_id.startswith("tech-") and tech.department == "suporte" for tech in technicians)


def test_seed_defaults_is_idempotent(auth):
    auth.seed_defaults()
    ids = [user.user_id for user in auth.list_users()]

    assert auth.seed_defaults() == []
    assert [user.user_id for user in auth.list_users()] == ids


def test_seed_defaults_only_adds_missing_accounts(auth):
    auth.register(Registration(name="Caio Custom", email="caio@fixit.com", password="mine", role="user"))

    added = auth.seed_defaults()

    assert "caio@fixit.com" not in {user.email for user in added}
    assert len(auth.list_users()) == 5
    assert auth.login("caio@fixit.com", "mine").name == "Caio Custom"


def test_get_user_by_id(seeded):
    technician = seeded.list_technicians()[0]

    assert seeded.get_user(technician.user_id) == technician
    assert seeded.get_user("missing") is None


def test_is_admin_accepts_role_or_bootstrap_email(seeded, reporter):
    admin = seeded.login("admin@fixit.com", "admin")

    assert is_admin(admin)
    assert not is_admin(reporter)
    assert not is_admin(None)


def test_malformed_user_entries_are_skipped(auth, storage, caplog):
    auth.register(Registration(name="Ana", email="ana@example.com", password="pw"))
    users = storage.get_item(USERS_KEY)
    storage.set_item(USERS_KEY, [{"email": "x"}, *users, "not-a-record"])

    assert [user.email for user in auth.list_users()] == ["ana@example.com"]
    assert "Skipping unreadable user entry" in caplog.text
    assert len(auth.seed_defaults()) == 5
