"""In-process attempt log (tests, development, single-worker deployments)."""
import itertools
import threading
from datetime import datetime
from typing import List

from lockdown.domain.login_attempt import LoginAttempt


class InMemoryAttemptRepository:
    """List-backed attempt storage guarded by a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._attempts: List[LoginAttempt] = []

    def insert(self, attempt: LoginAttempt) -> LoginAttempt:
        with self._lock:
            stored = attempt.with_id(next(self._ids))
            self._attempts.append(stored)
            return stored

    def count_since(self, ip: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for a in self._attempts
                if a.ip_address == ip and a.attempted_at >= since
            )

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [a for a in self._attempts if a.attempted_at >= cutoff]
            deleted = len(self._attempts) - len(kept)
            self._attempts = kept
            return deleted

    def recent_for(self, ip: str, limit: int) -> list:
        with self._lock:
            matches = [a for a in self._attempts if a.ip_address == ip]
        matches.sort(key=lambda a: (a.attempted_at, a.id), reverse=True)
        return matches[:max(limit, 0)]

    def all(self) -> list:
        """Snapshot of every stored attempt, oldest first."""
        with self._lock:
            return list(self._attempts)
