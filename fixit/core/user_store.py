from __future__ import annotations

import logging
from typing import Iterable

from .local_store import CURRENT_USER_KEY, USERS_KEY, LocalStorage
from .models import User, UserRecord

logger = logging.getLogger(__name__)


class UserStore:
    """Persistence for registered accounts, kept as one JSON list."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def list_users(self) -> list[UserRecord]:
        data = self._storage.get_item(USERS_KEY, [])
        if not isinstance(data, list):
            logger.warning("Ignoring malformed user list of type %s", type(data).__name__)
            return []
        users = []
        for entry in data:
            try:
                users.append(UserRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable user entry: %r", exc)
        return users

    def save_users(self, users: Iterable[UserRecord]) -> None:
        self._storage.set_item(USERS_KEY, [user.to_dict() for user in users])


class SessionStore:
    """The single "current user" pointer of this client."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def load(self) -> User | None:
        data = self._storage.get_item(CURRENT_USER_KEY)
        if not data:
            return None
        try:
            return User.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable session: %s", exc)
            return None

    def save(self, user: User) -> None:
        self._storage.set_item(CURRENT_USER_KEY, user.to_dict())

    def clear(self) -> None:
        self._storage.remove_item(CURRENT_USER_KEY)
