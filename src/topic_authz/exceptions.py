"""Exception hierarchy for topic-authz."""

from __future__ import annotations

__all__ = [
    "AuthenticationDenied",
    "AuthorizationDenied",
    "ConfigurationError",
    "StoreError",
    "StoreProtocolError",
    "StoreTimeout",
    "StoreUnavailable",
    "TopicAuthzError",
]


class TopicAuthzError(Exception):
    """Base exception for all topic-authz errors."""


class AuthenticationDenied(TopicAuthzError):  # noqa: N818
    """Credentials were rejected.

    The engine itself reports this outcome as a ``Decision``; the exception
    is only raised by :func:`~topic_authz.require_connect`.

    Attributes:
        username: The username that was rejected.
        reason: The internal reason string (for logs, not for clients).
    """

    def __init__(self, *, username: str, reason: str = "", message: str | None = None) -> None:
        self.username = username
        self.reason = reason
        if message is None:
            message = f"Authentication failed for {username!r}"
        super().__init__(message)


class AuthorizationDenied(TopicAuthzError):  # noqa: N818
    """No rule granted the requested access on the topic.

    Attributes:
        username: The requester's username.
        topic: The topic that was requested.
        access: The requested access bitmask.

    Example::

        try:
            require_access(engine, "alice", "devices/bob/up", Access.WRITE)
        except AuthorizationDenied as exc:
            print(f"{exc.username} cannot access {exc.topic}")
    """

    def __init__(
        self,
        *,
        username: str,
        topic: str,
        access: int,
        message: str | None = None,
    ) -> None:
        self.username = username
        self.topic = topic
        self.access = access
        if message is None:
            message = f"User {username!r} is not authorized for access {access} on {topic!r}"
        super().__init__(message)


class ConfigurationError(TopicAuthzError):
    """A required setting is missing or invalid.

    Raised while building an :class:`~topic_authz.config.EngineConfig` or an
    :class:`~topic_authz.AuthzEngine`. It prevents the engine from starting
    and is never turned into an Allow/Deny at runtime.
    """


class StoreError(TopicAuthzError):
    """Base class for failures talking to the credential/policy store."""


class StoreUnavailable(StoreError):  # noqa: N818
    """The store could not be reached or the pool could not be created."""


class StoreTimeout(StoreError):  # noqa: N818
    """A store operation exceeded its deadline and was abandoned."""


class StoreProtocolError(StoreError):
    """A row returned by the store could not be decoded.

    Scoped to that single row: evaluation skips it and carries on.
    """
