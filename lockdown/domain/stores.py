"""Persistence ports required by the protection engine."""
from datetime import datetime
from typing import Protocol, Sequence

from lockdown.domain.block import Block
from lockdown.domain.login_attempt import LoginAttempt


class AttemptStore(Protocol):
    """Append-only log of failed login attempts."""

    def insert(self, attempt: LoginAttempt) -> LoginAttempt:
        ...

    def count_since(self, ip: str, since: datetime) -> int:
        """Attempts for ``ip`` with ``attempted_at >= since``."""
        ...

    def delete_older_than(self, cutoff: datetime) -> int:
        ...

    def recent_for(self, ip: str, limit: int) -> Sequence[LoginAttempt]:
        ...


class BlockStore(Protocol):
    """One Block row per IP; the IP column is unique."""

    def get(self, ip: str) -> Block | None:
        ...

    def upsert(self, block: Block) -> None:
        ...

    def delete(self, ip: str) -> bool:
        ...

    def delete_by_id(self, block_id: int) -> bool:
        ...

    def list_active(self, include_expired: bool, now: datetime) -> Sequence[Block]:
        ...

    def delete_expired(self, as_of: datetime) -> int:
        ...
