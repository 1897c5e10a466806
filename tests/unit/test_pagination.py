"""Unit tests for opaque cursor pagination."""

from datetime import UTC, datetime

from src.pm_common.pagination import cursor_decode, cursor_encode


def test_cursor_carries_timestamp_and_id() -> None:
    ts = datetime(2026, 10, 1, 12, 30, tzinfo=UTC)
    assert cursor_decode(cursor_encode(ts, "tx-9")) == (ts, "tx-9")


def test_missing_cursor() -> None:
    assert cursor_decode(None) == (None, None)


def test_garbled_cursor_falls_back_to_first_page() -> None:
    assert cursor_decode("not-base64!!") == (None, None)
    assert cursor_decode("eyJmb28iOiAxfQ==") == (None, None)  # {"foo": 1}
