"""
Tests for log processors.
"""

from stayquest.core.logging import REDACTED, redact_secrets


def test_credentials_are_masked():
    event = redact_secrets(None, "info", {
        "event": "user_logged_in",
        "user_id": "u1",
        "access_token": "eyJhbGciOi",
        "password": "hunter22",
    })

    assert event["access_token"] == REDACTED
    assert event["password"] == REDACTED
    assert event["user_id"] == "u1"
    assert event["event"] == "user_logged_in"
