"""Validation guards for operator-supplied input."""
from ipaddress import ip_address

from lockdown.domain.errors import ValidationError


def validate_ip(value: str | None) -> str:
    """Return the stripped address, or raise ValidationError naming the input."""
    candidate = (value or "").strip()
    try:
        ip_address(candidate)
    except ValueError:
        raise ValidationError(f"Invalid IP address: {value!r}", value=value) from None
    return candidate


def validate_retention_days(days: int) -> int:
    """Raises if the retention window is not a positive number of days."""
    if days < 1:
        raise ValidationError(f"Retention must be at least 1 day, got {days}.", value=str(days))
    return days
