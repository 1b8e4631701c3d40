"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+|access_token\"\s*:\s*\"[^\"]+\"|password\"\s*:\s*\"[^\"]+\")",
    re.IGNORECASE,
)
_ATTENDEE_EMAIL_PATTERN = re.compile(
    r"(attendee_email\"?\s*[:=]\s*\"?)([^\"\s,}]+)", re.IGNORECASE
)
_ATTENDEE_PHONE_PATTERN = re.compile(
    r"(attendee_phone\"?\s*[:=]\s*\"?)([^\"\s,}]+)", re.IGNORECASE
)


def mask_email(value: str | None) -> str | None:
    """Keep the first character of the local part and the domain."""
    if not value or "@" not in value:
        return value
    local, _, domain = value.partition("@")
    return f"{local[:1]}***@{domain}"


def mask_phone(value: str | None) -> str | None:
    """Keep only the last four digits."""
    if not value:
        return value
    digits = "".join(ch for ch in value if ch.isdigit())
    if len(digits) < 4:
        return "***"
    return f"***-***-{digits[-4:]}"


def scrub(message: str) -> str:
    """Return ``message`` with tokens, passwords and attendee contacts masked."""
    message = _SENSITIVE_PATTERN.sub("**REDACTED**", message)
    message = _ATTENDEE_EMAIL_PATTERN.sub(
        lambda match: match.group(1) + (mask_email(match.group(2)) or ""), message
    )
    return _ATTENDEE_PHONE_PATTERN.sub(
        lambda match: match.group(1) + (mask_phone(match.group(2)) or ""), message
    )


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        return True


__all__ = ["SensitiveFilter", "mask_email", "mask_phone", "scrub"]
