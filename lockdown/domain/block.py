"""Block entity -- at most one per IP address, refreshed in place."""
from datetime import datetime


class Block:
    """
    Blocked IP address with an expiration instant.

    A block is active iff ``now < blocked_until``. Expired rows may still
    exist in storage until an unblock or a cleanup sweep removes them.
    """

    def __init__(
        self,
        ip_address: str,
        blocked_until: datetime,
        attempt_count: int = 0,
        reason: str = "Manual block",
        is_manual: bool = False,
        block_id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        if not ip_address:
            raise ValueError("ip_address is required")
        if attempt_count < 0:
            raise ValueError("attempt_count cannot be negative")
        self._id = block_id
        self._ip_address = ip_address
        self._attempt_count = attempt_count
        self._reason = reason
        self._blocked_until = blocked_until
        self._is_manual = is_manual
        self._created_at = created_at
        self._updated_at = updated_at

    @property
    def id(self) -> int | None:
        return self._id

    @property
    def ip_address(self) -> str:
        return self._ip_address

    @property
    def attempt_count(self) -> int:
        return self._attempt_count

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def blocked_until(self) -> datetime:
        return self._blocked_until

    @property
    def is_manual(self) -> bool:
        return self._is_manual

    @property
    def created_at(self) -> datetime | None:
        return self._created_at

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    def is_active(self, now: datetime) -> bool:
        return now < self._blocked_until

    def to_dict(self, now: datetime | None = None) -> dict:
        data = {
            "id": self._id,
            "ip_address": self._ip_address,
            "attempt_count": self._attempt_count,
            "reason": self._reason,
            "blocked_until": self._blocked_until.isoformat(),
            "is_manual": self._is_manual,
            "created_at": self._created_at.isoformat() if self._created_at else None,
            "updated_at": self._updated_at.isoformat() if self._updated_at else None,
        }
        if now is not None:
            data["active"] = self.is_active(now)
        return data

    def __repr__(self) -> str:
        return (
            f"Block(ip={self._ip_address!r}, until={self._blocked_until.isoformat()}, "
            f"manual={self._is_manual})"
        )
