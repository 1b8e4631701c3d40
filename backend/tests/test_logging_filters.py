"""Tests for log redaction."""

import logging

from app.security.logging_filters import SensitiveFilter, mask_email, mask_phone, scrub


def test_scrub_masks_tokens_and_attendee_contacts() -> None:
    message = (
        'Authorization: Bearer abc.def-ghi {"password": "hunter22", '
        '"attendee_email": "alex@example.com", "attendee_phone": "+33612345678"}'
    )

    scrubbed = scrub(message)

    assert "abc.def-ghi" not in scrubbed
    assert "hunter22" not in scrubbed
    assert "alex@example.com" not in scrubbed
    assert "a***@example.com" in scrubbed
    assert "***-***-5678" in scrubbed


def test_filter_rewrites_record_message() -> None:
    record = logging.LogRecord(
        "app", logging.INFO, __file__, 1, "attendee_email=sam@example.org", None, None
    )

    assert SensitiveFilter().filter(record) is True
    assert record.msg == "attendee_email=s***@example.org"


def test_masking_helpers_handle_short_values() -> None:
    assert mask_email(None) is None
    assert mask_email("not-an-email") == "not-an-email"
    assert mask_phone("12") == "***"
