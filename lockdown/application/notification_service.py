"""Notification service -- fans block events out to e-mail and Pushover."""
import logging

from lockdown.config import ProtectionSettings
from lockdown.domain.events import BlockEvent
from lockdown.infrastructure.notifications.email_sender import send_email
from lockdown.infrastructure.notifications.pushover import PushoverError, send_pushover

log = logging.getLogger("lockdown.notify")


def build_block_message(event: BlockEvent, site_name: str) -> str:
    lines = [
        f"Login Lockdown has blocked IP address {event.ip_address} on {site_name}.",
        "",
        "Details:",
        f"- Failed attempts: {event.attempt_count}",
    ]
    if event.username:
        lines.append(f"- Last attempted username: {event.username}")
    lines.append(f"- Blocked at: {event.blocked_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
    return "\n".join(lines) + "\n"


class NotificationService:
    """NotificationSink implementation. Delivery failures never propagate."""

    def __init__(self, settings: ProtectionSettings):
        self._settings = settings

    def _pushover_ready(self) -> bool:
        s = self._settings
        return s.pushover_enabled and bool(s.pushover_user_key) and bool(s.pushover_api_token)

    def notify_blocked(self, event: BlockEvent) -> None:
        if not self._settings.notify_on_block:
            return

        site_name = self._settings.site_name
        message = build_block_message(event, site_name)

        if self._settings.notify_email:
            send_email(
                self._settings.notify_email,
                f"[{site_name}] Login Lockdown - IP Blocked",
                message,
            )

        if self._pushover_ready():
            try:
                send_pushover(
                    self._settings.pushover_user_key,
                    self._settings.pushover_api_token,
                    f"Login Lockdown Alert - {site_name}",
                    message,
                )
                log.info("Pushover notification sent for %s", event.ip_address)
            except PushoverError as exc:
                log.error("Pushover notification failed: %s", exc)

    def send_test_pushover(self) -> dict:
        """Send a test message and report the outcome for operators."""
        if not self._settings.pushover_enabled:
            return {"success": False, "message": "Pushover notifications are not enabled."}
        if not (self._settings.pushover_user_key and self._settings.pushover_api_token):
            return {"success": False, "message": "Pushover User Key and API Token are required."}

        site_name = self._settings.site_name
        try:
            send_pushover(
                self._settings.pushover_user_key,
                self._settings.pushover_api_token,
                f"Login Lockdown Test - {site_name}",
                f"This is a test notification from Login Lockdown on {site_name}. "
                "Your Pushover configuration is working correctly!",
            )
        except PushoverError as exc:
            log.error("Test Pushover notification failed: %s", exc)
            return {"success": False, "message": f"Pushover API error: {exc}"}

        log.info("Test Pushover notification sent successfully")
        return {"success": True, "message": "Test notification sent successfully!"}
