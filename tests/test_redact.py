from __future__ import annotations

from airwatch._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "auth": "db-secret",
        "params": {"auth": "db-secret", "print": "silent"},
        "mqtt_password": "pw",
        "readings": [{"pm25": 6}],
    }

    redacted = redact_for_log(payload)
    assert redacted["auth"] == "<redacted>"
    assert redacted["params"] == {"auth": "<redacted>", "print": "silent"}
    assert redacted["mqtt_password"] == "<redacted>"
    assert redacted["readings"] == [{"pm25": 6}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_url_hides_auth_query() -> None:
    url = "https://example-rtdb.firebaseio.com/AirQuality.json?auth=s3cret&print=silent"

    redacted = redact_url(url)

    assert "s3cret" not in redacted
    assert redacted == "https://example-rtdb.firebaseio.com/AirQuality.json?auth=<redacted>&print=silent"


def test_redact_url_without_query_unchanged() -> None:
    assert redact_url("https://example.com/a.json") == "https://example.com/a.json"
