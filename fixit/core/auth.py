from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .models import ROLES, User, UserRecord, utcnow
from .user_store import SessionStore, UserStore

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@fixit.com"

_BASE36 = string.digits + string.ascii_lowercase


class AuthError(RuntimeError):
    """Base class for identity failures surfaced to the user."""


class DuplicateEmailError(AuthError):
    def __init__(self, email: str) -> None:
        super().__init__("Email already registered")
        self.email = email


class InvalidCredentialsError(AuthError):
    def __init__(self) -> None:
        # Same message for unknown email and wrong password.
        super().__init__("Invalid email or password")


@dataclass(frozen=True)
class Registration:
    name: str
    email: str
    password: str
    telephone: str | None = None
    department: str | None = None
    role: str = "user"


@dataclass(frozen=True)
class _SeedAccount:
    name: str
    email: str
    password: str
    department: str
    role: str
    id_prefix: str


DEFAULT_ACCOUNTS: tuple[_SeedAccount, ...] = (
    _SeedAccount("Administrador", ADMIN_EMAIL, "admin", "ti", "admin", "admin-"),
    _SeedAccount("Guilherme", "guilherme@fixit.com", "guilherme", "suporte", "technician", "tech-"),
    _SeedAccount("Caio", "caio@fixit.com", "caio", "suporte", "technician", "tech-"),
    _SeedAccount("Gustavo", "gustavo@fixit.com", "gustavo", "suporte", "technician", "tech-"),
    _SeedAccount("Mariana", "mariana@fixit.com", "mariana", "suporte", "technician", "tech-"),
)


def generate_id() -> str:
    """Two random base-36 fragments; unique with high probability only."""
    return "".join(secrets.choice(_BASE36) for _ in range(13)) + "".join(
        secrets.choice(_BASE36) for _ in range(13)
    )


def is_admin(user: Optional[User]) -> bool:
    if user is None:
        return False
    return user.role == "admin" or user.email == ADMIN_EMAIL


class AuthService:
    """Registration, login and the current session, backed by JSON storage."""

    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._user_store = user_store
        self._session_store = session_store
        self._clock = clock

    def register(self, data: Registration) -> User:
        name = data.name.strip()
        email = data.email.strip()
        if not name:
            raise ValueError("Name is required.")
        if not email:
            raise ValueError("Email is required.")
        if not data.password:
            raise ValueError("Password is required.")
        if data.role not in ROLES:
            raise ValueError(f"Unknown role '{data.role}'.")

        users = self._user_store.list_users()
        if any(user.email == email for user in users):
            raise DuplicateEmailError(email)

        record = UserRecord(
            user_id=generate_id(),
            name=name,
            email=email,
            password=data.password,
            created_at=self._clock(),
            role=data.role,
            telephone=data.telephone or None,
            department=data.department or None,
        )
        users.append(record)
        self._user_store.save_users(users)
        logger.info("Registered user %s with role %s", record.user_id, record.role)
        return record.public()

    def login(self, email: str, password: str) -> User:
        matches = [
            record
            for record in self._user_store.list_users()
            if record.email == email and record.password == password
        ]
        if len(matches) != 1:
            logger.info("Rejected login attempt")
            raise InvalidCredentialsError()

        user = matches[0].public()
        self._session_store.save(user)
        logger.info("User %s logged in", user.user_id)
        return user

    def current_user(self) -> User | None:
        return self._session_store.load()

    def logout(self) -> None:
        self._session_store.clear()

    def list_users(self) -> list[User]:
        return [record.public() for record in self._user_store.list_users()]

    def list_technicians(self) -> list[User]:
        return [user for user in self.list_users() if user.role == "technician"]

    def get_user(self, user_id: str) -> User | None:
        for user in self.list_users():
            if user.user_id == user_id:
                return user
        return None

    def seed_defaults(self) -> list[User]:
        """Make sure the bootstrap admin and technicians exist.

        Accounts are matched by exact email; missing ones are appended and
        the whole list is written once. Returns the accounts that were added.
        """
        users = self._user_store.list_users()
        existing = {user.email for user in users}
        added: list[UserRecord] = []
        for account in DEFAULT_ACCOUNTS:
            if account.email in existing:
                continue
            added.append(
                UserRecord(
                    user_id=account.id_prefix + generate_id(),
                    name=account.name,
                    email=account.email,
                    password=account.password,
                    created_at=self._clock(),
                    role=account.role,
                    department=account.department,
                )
            )

        if added:
            self._user_store.save_users([*users, *added])
            logger.info("Seeded %d default account(s)", len(added))
        return [record.public() for record in added]
