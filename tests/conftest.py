"""
Shared pytest fixtures for the Login Lockdown test suite.

Strategy:
- Domain / application tests: in-memory stores and a controllable clock.
- SQL repository tests: SQLite in-memory engine shared through a StaticPool.
- API tests: FastAPI TestClient around an app built from in-memory stores.
  DATABASE_URL is cleared so nothing touches a real database.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

# ---------------------------------------------------------------------------
# Environment must be set before jwt_handler is imported
# ---------------------------------------------------------------------------
os.environ.pop("DATABASE_URL", None)
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production-123456")
os.environ.setdefault("ENV", "test")

from lockdown.application.login_gate import LoginGate
from lockdown.application.notification_service import NotificationService
from lockdown.application.protection_engine import ProtectionEngine
from lockdown.config import ProtectionSettings
from lockdown.infrastructure.repositories.memory_attempt_repository import InMemoryAttemptRepository
from lockdown.infrastructure.repositories.memory_block_repository import InMemoryBlockRepository

T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        self.current = self.current + timedelta(seconds=seconds, **kwargs)
        return self.current


class RecordingSink:
    """NotificationSink that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def notify_blocked(self, event) -> None:
        self.events.append(event)


def make_settings(**overrides) -> ProtectionSettings:
    values = {
        "max_attempts": 3,
        "attempt_window_seconds": 900,
        "lockout_duration_seconds": 3600,
    }
    values.update(overrides)
    return ProtectionSettings(**values)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def tmp_audit_log(monkeypatch, tmp_path):
    """Keep audit entries written by routes and the CLI out of the repo."""
    import lockdown.infrastructure.audit as audit_mod
    monkeypatch.setattr(audit_mod, "LOG_DIR", tmp_path)
    monkeypatch.setattr(audit_mod, "LOG_FILE", tmp_path / "audit.log")
    return tmp_path / "audit.log"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def attempts():
    return InMemoryAttemptRepository()


@pytest.fixture
def blocks():
    return InMemoryBlockRepository()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(settings, attempts, blocks, sink, clock):
    return ProtectionEngine(settings, attempts, blocks, notifier=sink, now=clock)


# ---------------------------------------------------------------------------
# SQLite in-memory database
# ---------------------------------------------------------------------------

@pytest.fixture
def session_factory():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from lockdown.infrastructure.database.connection import ManagedSessionFactory, create_tables

    db = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(db)
    yield ManagedSessionFactory(sessionmaker(bind=db, expire_on_commit=False))
    db.dispose()


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

def build_test_protection(settings, engine, persistence="memory", health_check=lambda: True):
    from lockdown.bootstrap import Protection

    return Protection(
        settings=settings,
        engine=engine,
        gate=LoginGate(engine),
        notifier=NotificationService(settings),
        persistence=persistence,
        health_check=health_check,
    )


@pytest.fixture
def protection(settings, engine):
    return build_test_protection(settings, engine)


@pytest.fixture
def client(protection):
    from fastapi.testclient import TestClient
    from lockdown.api.app import create_app

    return TestClient(create_app(protection))


@pytest.fixture
def admin_headers():
    from lockdown.infrastructure.auth.jwt_handler import create_access_token

    token = create_access_token("admin", role="admin")
    return {"Authorization": f"Bearer {token}"}
