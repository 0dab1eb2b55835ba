"""SQLAlchemy ORM models -- login attempt log and blocked IP table."""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, Index,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow():
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Login attempts (immutable event record)
# ---------------------------------------------------------------------------

class LoginAttemptModel(Base):
    __tablename__ = "lockdown_login_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(45), nullable=False, index=True)
    username = Column(String(255), nullable=True)
    user_agent = Column(Text, nullable=True)
    attempted_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        # Windowed counts: WHERE ip_address = ? AND attempted_at >= ?
        Index("ix_lockdown_login_attempts_ip_time", "ip_address", "attempted_at"),
    )


# ---------------------------------------------------------------------------
# Blocked IPs (one row per IP, refreshed in place)
# ---------------------------------------------------------------------------

class BlockedIpModel(Base):
    __tablename__ = "lockdown_blocked_ips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(45), unique=True, nullable=False, index=True)
    reason = Column(String(255), nullable=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    blocked_until = Column(DateTime(timezone=True), nullable=False, index=True)
    is_manual = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
