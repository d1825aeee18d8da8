"""Shared value types and aliases for topic-authz."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from topic_authz._decision import Decision

__all__ = [
    "Access",
    "AccessRequest",
    "PolicyHook",
    "Requester",
    "coerce_access",
]


class Access(enum.IntFlag):
    """Access bitmask understood by the broker.

    Values combine with ``|``::

        Access.READ | Access.SUBSCRIBE  # == 5
    """

    READ = 1
    WRITE = 2
    SUBSCRIBE = 4


_ALL_ACCESS = int(Access.READ | Access.WRITE | Access.SUBSCRIBE)


def coerce_access(value: int) -> Access:
    """Validate a requested access bitmask.

    Raises:
        ValueError: If *value* is zero or carries bits outside
            ``READ | WRITE | SUBSCRIBE``.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"access must be an integer bitmask, got {value!r}")
    if value <= 0 or value & ~_ALL_ACCESS:
        raise ValueError(f"access must combine READ=1, WRITE=2, SUBSCRIBE=4; got {value!r}")
    return Access(value)


@dataclass(frozen=True, slots=True)
class Requester:
    """Identity of the client asking for access.

    Attributes:
        username: Authenticated username (may be empty for anonymous clients).
        client_id: The MQTT client identifier.
        source_address: Peer address as reported by the broker.
    """

    username: str
    client_id: str = ""
    source_address: str = ""


@dataclass(frozen=True, slots=True)
class AccessRequest:
    """A single publish/subscribe operation on a topic."""

    topic: str
    access: Access


# A hook receives (source_address, username, topic, access) and either
# returns a Decision to short-circuit rule scanning or None to defer.
PolicyHook = Callable[[str, str, str, Access], "Decision | None"]
