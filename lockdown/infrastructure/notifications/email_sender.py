"""SMTP email sender for block notifications.

Reads credentials from environment variables:
  SMTP_HOST       (default: smtp.gmail.com)
  SMTP_PORT       (default: 587)
  SMTP_USER       account used to send
  SMTP_PASSWORD   account password / app password
  SMTP_FROM       Display name <email> (optional)

If SMTP_USER is not set, messages are logged instead of sent (dev mode).
"""
import os
import smtplib
import logging
from email.mime.text import MIMEText

log = logging.getLogger("lockdown.email")


def _smtp_config() -> dict:
    """Read SMTP credentials fresh from env on every call (supports hot-reload)."""
    return {
        "host":     os.environ.get("SMTP_HOST", "smtp.gmail.com"),
        "port":     int(os.environ.get("SMTP_PORT", "587")),
        "user":     os.environ.get("SMTP_USER", ""),
        "password": os.environ.get("SMTP_PASSWORD", ""),
        "from":     os.environ.get("SMTP_FROM", os.environ.get("SMTP_USER", "")),
    }


def send_email(to_email: str, subject: str, body: str) -> bool:
    """Send a plain-text message. Returns True when handed to the SMTP server.

    Never raises: delivery problems are logged and reported as False.
    """
    cfg = _smtp_config()

    if not cfg["user"]:
        log.info("[DEV MODE] Email to %s: %s\n%s", to_email, subject, body)
        return False

    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = cfg["from"] or cfg["user"]
    msg["To"] = to_email

    try:
        with smtplib.SMTP(cfg["host"], cfg["port"], timeout=15) as server:
            server.ehlo()
            server.starttls()
            server.login(cfg["user"], cfg["password"])
            server.sendmail(cfg["user"], to_email, msg.as_string())
        log.info("Email notification sent to %s", to_email)
        return True
    except (smtplib.SMTPException, OSError) as exc:
        log.error("Failed to send email notification to %s: %s", to_email, exc)
        return False
