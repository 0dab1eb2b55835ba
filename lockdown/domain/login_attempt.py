"""LoginAttempt entity -- one failed authentication from a source IP."""
from datetime import datetime


class LoginAttempt:
    """Record of a single failed login. Immutable once created."""

    def __init__(
        self,
        ip_address: str,
        attempted_at: datetime,
        username: str | None = None,
        user_agent: str | None = None,
        attempt_id: int | None = None,
    ):
        if not ip_address:
            raise ValueError("ip_address is required")
        self._id = attempt_id
        self._ip_address = ip_address
        self._username = username
        self._user_agent = user_agent
        self._attempted_at = attempted_at

    @property
    def id(self) -> int | None:
        return self._id

    @property
    def ip_address(self) -> str:
        return self._ip_address

    @property
    def username(self) -> str | None:
        return self._username

    @property
    def user_agent(self) -> str | None:
        return self._user_agent

    @property
    def attempted_at(self) -> datetime:
        return self._attempted_at

    def with_id(self, attempt_id: int) -> "LoginAttempt":
        """Copy carrying the identifier assigned by a store."""
        return LoginAttempt(
            ip_address=self._ip_address,
            attempted_at=self._attempted_at,
            username=self._username,
            user_agent=self._user_agent,
            attempt_id=attempt_id,
        )

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "ip_address": self._ip_address,
            "username": self._username,
            "user_agent": self._user_agent,
            "attempted_at": self._attempted_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"LoginAttempt(ip={self._ip_address!r}, at={self._attempted_at.isoformat()})"
