"""Protection settings -- typed value object resolved from the environment.

Environment variables (all optional):
  LOCKDOWN_ENABLED            master switch (default: true)
  LOCKDOWN_MAX_ATTEMPTS       failed attempts before blocking (default: 5)
  LOCKDOWN_ATTEMPT_WINDOW     seconds over which attempts are counted (default: 900)
  LOCKDOWN_LOCKOUT_DURATION   seconds an IP stays blocked (default: 86400)
  LOCKDOWN_PROTECT_FRONT_END  also guard public login forms (default: true)
  LOCKDOWN_WHITELIST          comma-separated IPs / CIDR ranges never blocked
  LOCKDOWN_BLOCK_MESSAGE      text shown to blocked clients
  LOCKDOWN_GATE_FAIL_CLOSED   deny logins when storage is unreachable (default: false)
  LOCKDOWN_NOTIFY_ON_BLOCK    send notifications on block (default: false)
  LOCKDOWN_NOTIFY_EMAIL       recipient for e-mail notifications
  LOCKDOWN_PUSHOVER_ENABLED   send Pushover notifications (default: false)
  PUSHOVER_USER_KEY / PUSHOVER_API_TOKEN
  LOCKDOWN_SITE_NAME          name used in notifications
"""
import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from lockdown.domain.whitelist import Whitelist

DEFAULT_BLOCK_MESSAGE = (
    "Access temporarily blocked due to too many failed login attempts. "
    "Please try again later."
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ProtectionSettings(BaseModel):
    """Resolved configuration. Immutable for the lifetime of an evaluation."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    max_attempts: int = Field(5, gt=0)
    attempt_window_seconds: int = Field(900, gt=0)
    lockout_duration_seconds: int = Field(86400, gt=0)
    protect_front_end_login: bool = True
    whitelisted_ips: tuple[str, ...] = ()
    block_message: str = DEFAULT_BLOCK_MESSAGE
    gate_fail_closed: bool = False

    # Notifications
    notify_on_block: bool = False
    notify_email: str = ""
    pushover_enabled: bool = False
    pushover_user_key: str = ""
    pushover_api_token: str = ""
    site_name: str = "Login Lockdown"

    def whitelist(self) -> Whitelist:
        return Whitelist(self.whitelisted_ips)


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _parse_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_settings(env: Mapping[str, str] | None = None) -> ProtectionSettings:
    """Build settings from environment variables (``os.environ`` by default).

    Raises pydantic.ValidationError when a numeric limit is not positive.
    """
    env = os.environ if env is None else env
    values: dict = {
        "enabled": _parse_bool(env.get("LOCKDOWN_ENABLED"), True),
        "protect_front_end_login": _parse_bool(env.get("LOCKDOWN_PROTECT_FRONT_END"), True),
        "gate_fail_closed": _parse_bool(env.get("LOCKDOWN_GATE_FAIL_CLOSED"), False),
        "notify_on_block": _parse_bool(env.get("LOCKDOWN_NOTIFY_ON_BLOCK"), False),
        "pushover_enabled": _parse_bool(env.get("LOCKDOWN_PUSHOVER_ENABLED"), False),
        "whitelisted_ips": _parse_list(env.get("LOCKDOWN_WHITELIST")),
        "notify_email": env.get("LOCKDOWN_NOTIFY_EMAIL", "").strip(),
        "pushover_user_key": env.get("PUSHOVER_USER_KEY", "").strip(),
        "pushover_api_token": env.get("PUSHOVER_API_TOKEN", "").strip(),
    }
    for key, var in (
        ("max_attempts", "LOCKDOWN_MAX_ATTEMPTS"),
        ("attempt_window_seconds", "LOCKDOWN_ATTEMPT_WINDOW"),
        ("lockout_duration_seconds", "LOCKDOWN_LOCKOUT_DURATION"),
    ):
        raw = env.get(var, "").strip()
        if raw:
            values[key] = int(raw)
    message = env.get("LOCKDOWN_BLOCK_MESSAGE", "").strip()
    if message:
        values["block_message"] = message
    site_name = env.get("LOCKDOWN_SITE_NAME", "").strip()
    if site_name:
        values["site_name"] = site_name
    return ProtectionSettings(**values)
