"""Credential verification against a stored hash."""

from __future__ import annotations

import logging

from topic_authz.credentials._registry import SchemeRegistry, get_default_schemes

__all__ = ["verify"]

logger = logging.getLogger("topic_authz")


def verify(
    stored_hash: str,
    stored_salt: str | None,
    candidate_password: str,
    scheme: str,
    *,
    registry: SchemeRegistry | None = None,
) -> bool:
    """Check *candidate_password* against *stored_hash* using *scheme*.

    Never raises. An unknown scheme, an empty hash or password, or a hash
    the scheme cannot parse all return ``False``.

    Args:
        stored_hash: Hash as kept by the store.
        stored_salt: Per-user salt for schemes that need one.
        candidate_password: Password presented by the client.
        scheme: Identifier of the hash scheme recorded for the user.
        registry: Optional custom registry. Defaults to the global one.

    Example::

        verify(row.password_hash, row.salt, "s3cret", row.scheme)
    """
    if not stored_hash or not candidate_password:
        return False
    target = registry if registry is not None else get_default_schemes()
    strategy = target.lookup(scheme) if scheme else None
    if strategy is None:
        logger.warning("Unknown password hash scheme %r; rejecting credentials", scheme)
        return False
    try:
        return bool(strategy.verify(candidate_password, stored_hash, stored_salt))
    except Exception as exc:
        logger.warning("Stored %s hash could not be checked: %s", scheme, exc)
        return False
