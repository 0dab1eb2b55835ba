"""Database engine and session factory.

Any SQLAlchemy URL works; the default is a SQLite file under ``data/``.
Repositories receive a ``ManagedSessionFactory``: every session it opens is
rolled back on error, and SQLAlchemy failures surface as ``StoreError``.
"""
import logging
import os
import re
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lockdown.domain.errors import StoreError

log = logging.getLogger("lockdown.db")

ROOT = Path(__file__).resolve().parent.parent.parent.parent
DEFAULT_DATABASE_URL = "sqlite:///" + str(ROOT / "data" / "lockdown.db")

_engine = None
_SessionLocal = None

# Matches a postgres(ql):// URL anywhere inside a string.
_PG_URL_RE = re.compile(r"(postgres(?:ql)?://\S+)")


def resolve_database_url(raw: str | None = None) -> str:
    """Return a clean SQLAlchemy URL from ``raw`` or ``DATABASE_URL``.

    Handles:
    - Leading/trailing whitespace or newlines from copy-paste.
    - Literal surrounding quotes pasted in dashboards.
    - Full ``psql`` command pasted instead of just the URL.
    - ``postgres://`` scheme that SQLAlchemy rejects (needs ``postgresql://``).
    """
    if raw is None:
        raw = os.environ.get("DATABASE_URL", "")
    raw = raw.strip()

    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
        raw = raw[1:-1].strip()

    if not raw:
        return DEFAULT_DATABASE_URL

    match = _PG_URL_RE.search(raw)
    url = match.group(1) if match else raw
    url = url.rstrip("'\"").strip()

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    return url


def _masked(url: str) -> str:
    if "@" in url:
        return url.split("@")[-1].split("?")[0]
    return url.split("?")[0]


def build_engine(url: str):
    """Create a SQLAlchemy engine for ``url``."""
    log.info("Initialising database engine -> %s", _masked(url))
    if url.startswith("sqlite"):
        if url.startswith("sqlite:///") and not url.endswith(":memory:"):
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_size=3,
        max_overflow=5,
        pool_timeout=15,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=False,
    )


def init_engine(url: str | None = None) -> None:
    """Initialise the process-wide engine and sessionmaker."""
    global _engine, _SessionLocal
    _engine = build_engine(resolve_database_url(url))
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)


def get_engine():
    """Return the active SQLAlchemy engine (may be None)."""
    return _engine


def get_session_factory() -> "ManagedSessionFactory":
    """Return a managed session factory bound to the active engine."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialised. Call init_engine() first.")
    return ManagedSessionFactory(_SessionLocal)


def create_tables(engine=None) -> None:
    """Create all tables and indexes (idempotent)."""
    from lockdown.infrastructure.database.models import Base

    engine = engine or _engine
    if engine is None:
        raise RuntimeError("Database not initialised. Call init_engine() first.")
    Base.metadata.create_all(bind=engine)
    log.info("Tables verified.")


def check_health(engine=None) -> bool:
    """Lightweight connectivity probe."""
    engine = engine or _engine
    if engine is None:
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        log.warning("Database health check failed: %s", exc)
        return False


class ManagedSessionFactory:
    """Callable wrapper around a sessionmaker, passed to repositories.

    Usage (identical to bare sessionmaker):
        with session_factory() as session:
            ...
    """

    def __init__(self, sessionmaker_):
        self._sessionmaker = sessionmaker_

    def __call__(self):
        return self._managed_session()

    @contextmanager
    def _managed_session(self):
        session = self._sessionmaker()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"{type(exc).__name__}: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
