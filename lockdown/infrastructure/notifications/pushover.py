"""Pushover push-notification client."""
import logging

import requests

log = logging.getLogger("lockdown.notify")

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"
TIMEOUT_SECONDS = 10


class PushoverError(Exception):
    """Pushover rejected the message or could not be reached."""


def send_pushover(user_key: str, api_token: str, title: str, message: str) -> None:
    """POST a message to Pushover. Raises PushoverError on any failure."""
    try:
        resp = requests.post(
            PUSHOVER_URL,
            data={
                "token": api_token,
                "user": user_key,
                "message": message,
                "title": title,
                "priority": 0,
            },
            timeout=TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise PushoverError(str(exc)) from exc

    if resp.status_code == 200:
        return

    detail = "Unknown error"
    try:
        data = resp.json()
        errors = data.get("errors") if isinstance(data, dict) else None
        if isinstance(errors, list) and errors:
            detail = ", ".join(str(e) for e in errors)
    except ValueError:
        pass
    raise PushoverError(f"HTTP {resp.status_code}: {detail}")
