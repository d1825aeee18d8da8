"""Built-in password hash schemes."""

from __future__ import annotations

import hashlib
import hmac

import bcrypt

from topic_authz.credentials._registry import hash_scheme

__all__ = ["BCRYPT", "SHA256_SALT", "BcryptScheme", "Sha256SaltScheme"]

BCRYPT = "bcrypt"
SHA256_SALT = "sha256-salt"


@hash_scheme(BCRYPT)
class BcryptScheme:
    """Adaptive, self-salting bcrypt hashes (``$2b$<cost>$...``).

    The cost factor and salt live inside the stored hash, so ``salt`` is
    ignored.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))

    def hash(self, password: str, salt: str | None = None) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode("ascii")


@hash_scheme(SHA256_SALT)
class Sha256SaltScheme:
    """Hex SHA-256 of ``password + salt`` with a salt stored per user."""

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        expected = self.hash(password, salt)
        return hmac.compare_digest(expected, stored_hash.strip().lower())

    def hash(self, password: str, salt: str | None = None) -> str:
        return hashlib.sha256((password + (salt or "")).encode("utf-8")).hexdigest()
