"""One-way salted hashing for anonymous author secrets.

`SecretHasher` is passed explicitly to the services that need it; there is
no process-wide default instance.
"""
from __future__ import annotations

import base64
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from community_service.core.settings import settings

SCHEME = "scrypt"
SALT_BYTES = 16
KEY_BYTES = 32


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _b64decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


class SecretHasher:
    """Scrypt-based hasher producing self-describing digests.

    Digests have the form ``scrypt$n$r$p$salt$key`` so cost parameters can be
    raised later without invalidating stored secrets.
    """

    def __init__(self, n: int = 2**14, r: int = 8, p: int = 1) -> None:
        self.n = n
        self.r = r
        self.p = p

    @classmethod
    def from_settings(cls) -> SecretHasher:
        """Build a hasher using the configured cost parameters."""
        return cls(
            n=settings.secret_hash_n,
            r=settings.secret_hash_r,
            p=settings.secret_hash_p,
        )

    def hash(self, plaintext: str) -> str:
        """Return a salted digest of `plaintext`."""
        salt = secrets.token_bytes(SALT_BYTES)
        kdf = Scrypt(salt=salt, length=KEY_BYTES, n=self.n, r=self.r, p=self.p)
        key = kdf.derive(plaintext.encode("utf-8"))
        return "$".join(
            (SCHEME, str(self.n), str(self.r), str(self.p), _b64encode(salt), _b64encode(key))
        )

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return True if `plaintext` matches `digest`; False otherwise.

        Malformed digests never verify.
        """
        parts = digest.split("$")
        if len(parts) != 6 or parts[0] != SCHEME:
            return False
        try:
            n, r, p = (int(value) for value in parts[1:4])
            salt = _b64decode(parts[4])
            expected = _b64decode(parts[5])
            kdf = Scrypt(salt=salt, length=len(expected), n=n, r=r, p=p)
        except ValueError:
            return False

        try:
            kdf.verify(plaintext.encode("utf-8"), expected)
        except InvalidKey:
            return False
        return True


__all__ = ["SecretHasher"]
