"""Built-in policy hooks that can decide before any ACL rule is scanned."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable

from topic_authz._decision import Decision
from topic_authz._types import Access, PolicyHook

__all__ = ["address_bypass", "system_topic_subscribe"]

_READ_ONLY = int(Access.READ | Access.SUBSCRIBE)


def address_bypass(networks: Iterable[str]) -> PolicyHook:
    """Allow every request whose source address lies in one of *networks*.

    Typically used for bridges or services on a trusted subnet.

    Args:
        networks: CIDR strings (IPv4 or IPv6). Bare addresses are treated as
            single-host networks.

    Raises:
        ValueError: If a network string is invalid.

    Example::

        hooks = [address_bypass(["127.0.0.1", "10.20.0.0/16"])]
    """
    parsed = tuple(ipaddress.ip_network(n.strip(), strict=False) for n in networks)

    def hook(source_address: str, username: str, topic: str, access: Access) -> Decision | None:
        if not source_address:
            return None
        host = source_address
        # Brokers may report "host:port" or "[v6]:port".
        if host.startswith("["):
            host = host[1 : host.find("]")]
        elif host.count(":") == 1:
            host = host.split(":", 1)[0]
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            return None
        for network in parsed:
            if address.version == network.version and address in network:
                return Decision.allow(f"source address {address} in {network}")
        return None

    hook.__name__ = "address_bypass"
    return hook


def system_topic_subscribe(usernames: Iterable[str], prefix: str = "$SYS/") -> PolicyHook:
    """Let privileged users read and subscribe to broker system topics."""
    allowed = frozenset(usernames)

    def hook(source_address: str, username: str, topic: str, access: Access) -> Decision | None:
        if username not in allowed or not topic.startswith(prefix):
            return None
        if access & ~_READ_ONLY:
            return None
        return Decision.allow(f"system topic access for {username!r}")

    hook.__name__ = "system_topic_subscribe"
    return hook
