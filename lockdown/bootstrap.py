"""Process wiring -- builds one ProtectionEngine from the environment.

Persistence strategy:
  - LOCKDOWN_STORAGE=sql (default) -> SQLAlchemy, DATABASE_URL or a local SQLite file.
  - LOCKDOWN_STORAGE=memory        -> in-process stores (single worker, not durable).
"""
import logging
import os
from dataclasses import dataclass
from typing import Callable

from lockdown.application.login_gate import LoginGate
from lockdown.application.notification_service import NotificationService
from lockdown.application.protection_engine import ProtectionEngine
from lockdown.config import ProtectionSettings, load_settings

log = logging.getLogger("lockdown.bootstrap")


@dataclass
class Protection:
    """Everything the HTTP surface and the CLI need, built once per process."""

    settings: ProtectionSettings
    engine: ProtectionEngine
    gate: LoginGate
    notifier: NotificationService
    persistence: str
    health_check: Callable[[], bool]


def _build_stores(storage: str):
    if storage == "memory":
        from lockdown.infrastructure.repositories.memory_attempt_repository import InMemoryAttemptRepository
        from lockdown.infrastructure.repositories.memory_block_repository import InMemoryBlockRepository

        log.warning("Using in-memory stores: blocks are lost on restart.")
        return InMemoryAttemptRepository(), InMemoryBlockRepository(), lambda: True

    from lockdown.infrastructure.database.connection import (
        init_engine, create_tables, get_session_factory, check_health,
    )
    from lockdown.infrastructure.repositories.sql_attempt_repository import SqlAttemptRepository
    from lockdown.infrastructure.repositories.sql_block_repository import SqlBlockRepository

    init_engine()
    create_tables()
    sf = get_session_factory()
    return SqlAttemptRepository(sf), SqlBlockRepository(sf), check_health


def build_protection(settings: ProtectionSettings | None = None, storage: str | None = None) -> Protection:
    settings = settings or load_settings()
    storage = (storage or os.environ.get("LOCKDOWN_STORAGE", "sql")).strip().lower()
    if storage not in ("sql", "memory"):
        raise ValueError(f"LOCKDOWN_STORAGE must be 'sql' or 'memory', got {storage!r}")

    attempts, blocks, health_check = _build_stores(storage)
    notifier = NotificationService(settings)
    engine = ProtectionEngine(settings, attempts, blocks, notifier=notifier)
    return Protection(
        settings=settings,
        engine=engine,
        gate=LoginGate(engine),
        notifier=notifier,
        persistence=storage,
        health_check=health_check,
    )
