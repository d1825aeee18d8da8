"""AclRule — one decoded row of the ACL table."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from topic_authz.exceptions import StoreProtocolError

__all__ = ["GLOBAL_OWNER", "AclRule"]

# Owner value that makes a rule apply to every user.
GLOBAL_OWNER = "*"


@dataclass(frozen=True, slots=True)
class AclRule:
    """A topic pattern granting an access bitmask to an owner.

    Attributes:
        owner: A username, or ``"*"`` for a global rule.
        pattern: Topic template; may use ``+``, ``#``, ``{username}`` and
            ``{clientid}``.
        access: Bitmask of :class:`~topic_authz.Access` flags.
    """

    owner: str
    pattern: str
    access: int

    @property
    def is_global(self) -> bool:
        return self.owner == GLOBAL_OWNER

    def applies_to(self, username: str) -> bool:
        """Whether this rule is a candidate for *username*."""
        return self.owner == username or self.owner == GLOBAL_OWNER

    def grants(self, access: int) -> bool:
        """Whether the rule's bitmask intersects the requested *access*."""
        return (self.access & access) != 0

    @classmethod
    def from_row(cls, row: Any) -> AclRule:
        """Decode a store row into an ``AclRule``.

        Accepts SQLAlchemy ``Row`` objects, mappings with
        ``owner``/``pattern``/``access`` keys, or ``(owner, pattern, access)``
        tuples.

        Raises:
            StoreProtocolError: If the row is missing fields or holds values
                of the wrong type.
        """
        mapping = getattr(row, "_mapping", None)
        if mapping is None and isinstance(row, Mapping):
            mapping = row
        try:
            if mapping is not None:
                owner, pattern, access = mapping["owner"], mapping["pattern"], mapping["access"]
            else:
                owner, pattern, access = row
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreProtocolError(f"Undecodable ACL row {row!r}: {exc}") from exc

        if not isinstance(owner, str) or not owner:
            raise StoreProtocolError(f"ACL row has invalid owner {owner!r}")
        if not isinstance(pattern, str) or not pattern:
            raise StoreProtocolError(f"ACL row for {owner!r} has invalid pattern {pattern!r}")
        if isinstance(access, bool) or not isinstance(access, int) or access < 0:
            raise StoreProtocolError(
                f"ACL row {owner!r}/{pattern!r} has invalid access {access!r}"
            )
        return cls(owner=owner, pattern=pattern, access=access)
