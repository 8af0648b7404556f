from datetime import datetime, timedelta, timezone

import pytest

from fixit.core.auth import AuthService, Registration
from fixit.core.incidents import IncidentService, IncidentStore
from fixit.core.local_store import LocalStorage
from fixit.core.user_store import SessionStore, UserStore


class FakeClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "data")


@pytest.fixture
def auth(storage, clock):
    return AuthService(UserStore(storage), SessionStore(storage), clock=clock)


@pytest.fixture
def incident_store(storage):
    return IncidentStore(storage)


@pytest.fixture
def incidents(incident_store, clock):
    return IncidentService(incident_store, clock=clock)


@pytest.fixture
def seeded(auth):
    auth.seed_defaults()
    return auth


@pytest.fixture
def admin(seeded):
    return seeded.login("admin@fixit.com", "admin")


@pytest.fixture
def technician(seeded):
    return next(user for user in seeded.list_technicians() if user.email == "caio@fixit.com")


@pytest.fixture
def other_technician(seeded):
    return next(user for user in seeded.list_technicians() if user.email == "mariana@fixit.com")


@pytest.fixture
def reporter(seeded):
    return seeded.register(
        Registration(name="Ana Souza", email="ana@example.com", password="secret", department="financeiro")
    )


@pytest.fixture
def bystander(seeded):
    return seeded.register(Registration(name="Bruno Lima", email="bruno@example.com", password="secret"))
