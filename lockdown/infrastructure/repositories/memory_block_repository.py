"""In-process block table (tests, development, single-worker deployments)."""
import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Dict

from lockdown.domain.block import Block

log = logging.getLogger("lockdown.db")


class InMemoryBlockRepository:
    """Dict keyed by IP, so at most one block exists per address."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._blocks: Dict[str, Block] = {}

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, ip: str) -> Block | None:
        with self._lock:
            return self._blocks.get(ip)

    def list_active(self, include_expired: bool, now: datetime) -> list:
        with self._lock:
            blocks = list(self._blocks.values())
        if not include_expired:
            blocks = [b for b in blocks if b.blocked_until > now]
        blocks.sort(key=lambda b: (b.created_at, b.id), reverse=True)
        return blocks

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert(self, block: Block) -> None:
        """Insert or refresh the row for ``block.ip_address``."""
        if self.get(block.ip_address) is None:
            if self._insert_if_absent(block):
                return
            log.info("Concurrent block insert for %s, updating instead", block.ip_address)
        self._update(block)

    def _insert_if_absent(self, block: Block) -> bool:
        with self._lock:
            if block.ip_address in self._blocks:
                return False
            self._blocks[block.ip_address] = self._new_row(block)
            return True

    def _update(self, block: Block) -> None:
        with self._lock:
            existing = self._blocks.get(block.ip_address)
            if existing is None:
                # Deleted between the conflict and the update.
                self._blocks[block.ip_address] = self._new_row(block)
                return
            self._blocks[block.ip_address] = Block(
                ip_address=existing.ip_address,
                blocked_until=block.blocked_until,
                attempt_count=block.attempt_count,
                reason=block.reason,
                is_manual=block.is_manual,
                block_id=existing.id,
                created_at=existing.created_at,
                updated_at=block.updated_at or datetime.now(timezone.utc),
            )

    def _new_row(self, block: Block) -> Block:
        now = datetime.now(timezone.utc)
        return Block(
            ip_address=block.ip_address,
            blocked_until=block.blocked_until,
            attempt_count=block.attempt_count,
            reason=block.reason,
            is_manual=block.is_manual,
            block_id=next(self._ids),
            created_at=block.created_at or now,
            updated_at=block.updated_at or now,
        )

    def delete(self, ip: str) -> bool:
        with self._lock:
            return self._blocks.pop(ip, None) is not None

    def delete_by_id(self, block_id: int) -> bool:
        with self._lock:
            for ip, block in self._blocks.items():
                if block.id == block_id:
                    del self._blocks[ip]
                    return True
            return False

    def delete_expired(self, as_of: datetime) -> int:
        with self._lock:
            expired = [ip for ip, b in self._blocks.items() if b.blocked_until < as_of]
            for ip in expired:
                del self._blocks[ip]
            return len(expired)
