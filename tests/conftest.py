from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from taskboard.adapters.memory.task_repo import InMemoryTaskRepository
from taskboard.adapters.memory.user_repo import InMemoryUserRepository
from taskboard.adapters.notifications import InProcessChangeHub
from taskboard.adapters.system import UuidIdProvider
from taskboard.api.http import create_app
from taskboard.bootstrap import Services
from taskboard.services.auth_service import AuthService
from taskboard.services.task_service import TaskService
import taskboard.services.auth_service as auth_module


class FakeIdProvider:
    def __init__(self):
        self.counter = 0
    def new_id(self) -> str:
        self.counter += 1
        return f"id-{self.counter}"
    def is_valid(self, raw: str) -> bool:
        return raw.startswith("id-")


class FakeClock:
    def __init__(self, fixed: datetime | None = None):
        # jeśli nie podamy fixed, zwróci zawsze ten sam „teraz”
        self.fixed = fixed or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    def now(self) -> datetime:
        return self.fixed
    def advance(self, **kwargs) -> datetime:
        self.fixed = self.fixed + timedelta(**kwargs)
        return self.fixed


class RecordingNotifier:
    def __init__(self):
        self.events = []
    def publish(self, event) -> None:
        self.events.append(event)


class BrokenNotifier:
    def publish(self, event) -> None:
        raise ConnectionError("channel down")


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """PBKDF2 z produkcyjną liczbą rund spowalnia każdą rejestrację w testach."""
    monkeypatch.setattr(auth_module, "_PBKDF2_ROUNDS", 1_000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(clock, notifier):
    return TaskService(InMemoryTaskRepository(), notifier, FakeIdProvider(), clock)


@pytest.fixture
def services(clock):
    hub = InProcessChangeHub()
    ids = UuidIdProvider()
    return Services(
        tasks=TaskService(InMemoryTaskRepository(), hub, ids, clock),
        auth=AuthService(InMemoryUserRepository(), ids, clock),
        hub=hub,
    )


@pytest.fixture
def http(services):
    """TestClient to zwykły httpx.Client, więc ten sam obiekt dostaje klient API."""
    with TestClient(create_app(services), base_url="http://testserver/api") as client:
        yield client


@pytest.fixture
def signup(http):
    """Zakłada konto przez API; zwraca (token, user_id)."""
    def _signup(email="ala@example.com", name="Ala", password="secret123") -> tuple[str, str]:
        r = http.post("auth/register", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        body = r.json()
        return body["token"], body["user"]["id"]
    return _signup
