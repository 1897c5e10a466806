"""Unit tests for password hashing."""

from src.pm_gateway.auth.password import hash_password, verify_password


def test_hash_is_not_plaintext() -> None:
    hashed = hash_password("Secret123")
    assert hashed != "Secret123"
    assert hashed.startswith("$2b$")


def test_verify_roundtrip() -> None:
    hashed = hash_password("Secret123")
    assert verify_password("Secret123", hashed)
    assert not verify_password("secret123", hashed)
