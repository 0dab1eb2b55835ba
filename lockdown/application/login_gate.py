"""Login gate -- when to deny a login request, and the fail-open failure hook."""
import logging

from lockdown.application.protection_engine import ProtectionEngine
from lockdown.domain.errors import StoreError

log = logging.getLogger("lockdown.gate")


class LoginGate:
    """Adapts the protection engine to a host's login endpoints.

    Two areas are guarded: the administrative login (always) and public
    front-end logins (only when ``protect_front_end_login`` is set).
    """

    def __init__(self, engine: ProtectionEngine):
        self._engine = engine

    @property
    def block_message(self) -> str:
        return self._engine.settings.block_message

    def _guards(self, front_end: bool) -> bool:
        return not front_end or self._engine.settings.protect_front_end_login

    def should_deny(
        self,
        ip: str,
        *,
        authenticated: bool,
        is_submission: bool,
        front_end: bool = False,
    ) -> bool:
        """Return True when the request must be refused with the block message.

        Authenticated callers keep working and page views stay reachable so a
        blocked client can still see the login form. When the block table is
        unreachable the configured policy applies (fail-open by default).
        """
        if not self._guards(front_end):
            return False
        try:
            blocked = self._engine.is_blocked(ip)
        except StoreError as exc:
            fail_closed = self._engine.settings.gate_fail_closed
            log.error(
                "Block lookup failed for %s (%s); failing %s",
                ip, exc, "closed" if fail_closed else "open",
            )
            blocked = fail_closed
        if not blocked:
            return False
        if authenticated:
            return False
        if not is_submission:
            return False
        return True

    def report_failure(
        self,
        ip: str,
        username: str | None = None,
        user_agent: str | None = None,
        front_end: bool = False,
    ) -> bool:
        """Record a failed login without ever disturbing the login response.

        Returns True when the attempt triggered a block. Errors are logged and
        swallowed so the caller still sends its normal "invalid credentials"
        answer.
        """
        if not self._guards(front_end):
            return False
        try:
            return self._engine.record_failed_attempt(ip, username, user_agent)
        except Exception as exc:
            log.error("Error recording failed attempt from %s: %s", ip, exc)
            return False
