from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .auth import AuthService
from .incidents import IncidentService, IncidentStore
from .local_store import LocalStorage
from .user_store import SessionStore, UserStore


@dataclass(frozen=True)
class Services:
    storage: LocalStorage
    auth: AuthService
    incidents: IncidentService


def open_services(data_dir: Path) -> Services:
    storage = LocalStorage(data_dir)
    return Services(
        storage=storage,
        auth=AuthService(UserStore(storage), SessionStore(storage)),
        incidents=IncidentService(IncidentStore(storage)),
    )
