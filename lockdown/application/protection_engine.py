"""Protection engine -- records failed logins and decides when to block an IP.

All durable state lives in the injected stores. The engine holds no per-IP
state of its own and never caches block status, so one instance can serve
every concurrent request in a process.

The insert / count / upsert sequence in ``record_failed_attempt`` is not a
single transaction. Concurrent failures from one IP may each cross the
threshold; the block store collapses them into one row and the notification
sink may see the event more than once.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from lockdown.config import ProtectionSettings
from lockdown.domain.block import Block
from lockdown.domain.events import BlockEvent, NotificationSink, NullSink
from lockdown.domain.login_attempt import LoginAttempt
from lockdown.domain.stores import AttemptStore, BlockStore
from lockdown.domain.whitelist import Whitelist

log = logging.getLogger("lockdown.engine")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProtectionEngine:
    """Brute-force protection decisions over an attempt log and a block table."""

    def __init__(
        self,
        settings: ProtectionSettings,
        attempts: AttemptStore,
        blocks: BlockStore,
        notifier: NotificationSink | None = None,
        whitelist: Whitelist | None = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self._settings = settings
        self._attempts = attempts
        self._blocks = blocks
        self._notifier = notifier or NullSink()
        self._whitelist = whitelist if whitelist is not None else settings.whitelist()
        self._now = now

    @property
    def settings(self) -> ProtectionSettings:
        return self._settings

    def now(self) -> datetime:
        return self._now()

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def record_failed_attempt(
        self,
        ip: str,
        username: str | None = None,
        user_agent: str | None = None,
    ) -> bool:
        """Log a failed login and block the IP once it reaches the threshold.

        Returns True when this call triggered a block. Disabled protection
        and whitelisted IPs record nothing. Store errors propagate.
        """
        if not self._settings.enabled or self.is_whitelisted(ip):
            return False

        now = self._now()
        self._attempts.insert(LoginAttempt(
            ip_address=ip,
            attempted_at=now,
            username=username,
            user_agent=user_agent,
        ))
        log.info("Recorded failed login attempt from %s", ip)

        window_start = now - timedelta(seconds=self._settings.attempt_window_seconds)
        count = self._attempts.count_since(ip, window_start)

        max_attempts = self._settings.max_attempts
        if count < max_attempts:
            return False

        self.block_ip(ip, count, f"Exceeded {max_attempts} failed login attempts")
        self._notifier.notify_blocked(BlockEvent(
            ip_address=ip,
            attempt_count=count,
            username=username,
            blocked_at=now,
        ))
        return True

    def get_recent_attempts(self, ip: str, limit: int = 10) -> list:
        return list(self._attempts.recent_for(ip, limit))

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def block_ip(
        self,
        ip: str,
        attempt_count: int = 0,
        reason: str = "Manual block",
        is_manual: bool = False,
    ) -> None:
        """Block ``ip`` for the full lockout duration from now.

        Re-blocking refreshes the existing row instead of stacking durations.
        """
        now = self._now()
        self._blocks.upsert(Block(
            ip_address=ip,
            blocked_until=now + timedelta(seconds=self._settings.lockout_duration_seconds),
            attempt_count=attempt_count,
            reason=reason,
            is_manual=is_manual,
            created_at=now,
            updated_at=now,
        ))
        log.warning("Blocked IP %s - %s", ip, reason)

    def unblock_ip(self, ip: str) -> bool:
        removed = self._blocks.delete(ip)
        if removed:
            log.info("Unblocked IP %s", ip)
        return removed

    def unblock_by_id(self, block_id: int) -> bool:
        removed = self._blocks.delete_by_id(block_id)
        if removed:
            log.info("Unblocked block record %s", block_id)
        return removed

    def is_blocked(self, ip: str) -> bool:
        """True while an unexpired block exists for a non-whitelisted IP.

        Disabling protection or whitelisting the IP bypasses the row without
        deleting it.
        """
        if not self._settings.enabled:
            return False
        if self.is_whitelisted(ip):
            return False
        block = self._blocks.get(ip)
        return block is not None and block.is_active(self._now())

    def is_whitelisted(self, ip: str) -> bool:
        return self._whitelist.contains(ip)

    def get_blocked_ips(self, include_expired: bool = False) -> list:
        return list(self._blocks.list_active(include_expired, self._now()))

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def cleanup(self, older_than_days: int = 30) -> int:
        """Delete attempts older than the retention window and every expired block.

        Expired blocks go regardless of ``older_than_days``. Returns the total
        number of rows removed.
        """
        now = self._now()
        attempts_deleted = self._attempts.delete_older_than(now - timedelta(days=older_than_days))
        blocks_deleted = self._blocks.delete_expired(now)
        log.info(
            "Cleanup removed %d login attempts and %d expired blocks",
            attempts_deleted, blocks_deleted,
        )
        return attempts_deleted + blocks_deleted
