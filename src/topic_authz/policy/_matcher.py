"""Topic matching with ``+``/``#`` wildcards and identity placeholders."""

from __future__ import annotations

__all__ = ["USERNAME_PLACEHOLDER", "CLIENTID_PLACEHOLDER", "expand_pattern", "matches"]

USERNAME_PLACEHOLDER = "{username}"
CLIENTID_PLACEHOLDER = "{clientid}"

_SEPARATOR = "/"
_SINGLE_LEVEL = "+"
_MULTI_LEVEL = "#"


def expand_pattern(pattern: str, username: str, client_id: str) -> str:
    """Substitute ``{username}`` and ``{clientid}`` literally into *pattern*."""
    return pattern.replace(USERNAME_PLACEHOLDER, username).replace(
        CLIENTID_PLACEHOLDER, client_id
    )


def matches(pattern: str, topic: str, username: str, client_id: str) -> bool:
    """Return whether the ACL *pattern* covers *topic* for this requester.

    Placeholders are expanded first, then both strings are split on ``/``
    and walked level by level:

    - a literal level must equal the topic level exactly;
    - ``+`` consumes exactly one existing topic level;
    - ``#`` must be the final pattern level and consumes whatever is left,
      including nothing.

    Example::

        matches("devices/{username}/#", "devices/alice/up", "alice", "")  # True
        matches("a/#", "a", "", "")                                      # True
        matches("a/+/c", "a/x/y", "", "")                                # False
    """
    levels = expand_pattern(pattern, username, client_id).split(_SEPARATOR)
    topic_levels = topic.split(_SEPARATOR)
    last = len(levels) - 1

    for i, level in enumerate(levels):
        if i >= len(topic_levels):
            # Topic ran out first: only a terminal '#' may follow.
            return level == _MULTI_LEVEL and i == last
        if level == _MULTI_LEVEL:
            return i == last
        if level != _SINGLE_LEVEL and level != topic_levels[i]:
            return False
    return len(levels) == len(topic_levels)
