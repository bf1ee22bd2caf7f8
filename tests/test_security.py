# tests/test_security.py
"""Tests for anonymous secret hashing."""

import pytest

from community_service.core.security import SecretHasher


def test_hash_is_salted(hasher: SecretHasher) -> None:
    """Hashing the same secret twice yields different digests."""
    first = hasher.hash("secret")
    second = hasher.hash("secret")
    assert first != second
    assert first.startswith("scrypt$16$8$1$")


def test_verify_accepts_matching_secret(hasher: SecretHasher) -> None:
    digest = hasher.hash("correct horse")
    assert hasher.verify("correct horse", digest) is True


def test_verify_rejects_wrong_secret(hasher: SecretHasher) -> None:
    digest = hasher.hash("correct horse")
    assert hasher.verify("correct horsf", digest) is False


def test_verify_uses_parameters_stored_in_digest() -> None:
    """A digest made with other cost parameters still verifies."""
    digest = SecretHasher(n=2**5, r=4, p=1).hash("secret")
    assert SecretHasher(n=2**4).verify("secret", digest) is True


@pytest.mark.parametrize(
    "digest",
    [
        "",
        "plaintext",
        "bcrypt$16$8$1$c2FsdA$a2V5",
        "scrypt$x$8$1$c2FsdA$a2V5",
        "scrypt$15$8$1$c2FsdA$a2V5",
    ],
)
def test_verify_rejects_malformed_digest(hasher: SecretHasher, digest: str) -> None:
    assert hasher.verify("secret", digest) is False


def test_secret_is_not_stored_in_digest(hasher: SecretHasher) -> None:
    assert "my-secret" not in hasher.hash("my-secret")
