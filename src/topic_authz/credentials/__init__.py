"""Credential verification — pluggable password hash schemes."""

from topic_authz.credentials._registry import (
    HashScheme,
    SchemeRegistry,
    get_default_schemes,
    hash_scheme,
)
from topic_authz.credentials._schemes import (
    BCRYPT,
    SHA256_SALT,
    BcryptScheme,
    Sha256SaltScheme,
)
from topic_authz.credentials._verify import verify

__all__ = [
    "BCRYPT",
    "SHA256_SALT",
    "BcryptScheme",
    "HashScheme",
    "SchemeRegistry",
    "Sha256SaltScheme",
    "get_default_schemes",
    "hash_scheme",
    "verify",
]
