"""Point checks — boolean and raising wrappers around an AuthzEngine."""

from __future__ import annotations

from topic_authz._engine import AuthzEngine
from topic_authz.exceptions import AuthenticationDenied, AuthorizationDenied

__all__ = ["can_access", "can_connect", "require_access", "require_connect"]


def can_connect(engine: AuthzEngine, username: str, password: str, client_id: str = "") -> bool:
    """Return ``True`` if the credentials are accepted.

    Example::

        if not can_connect(engine, "alice", "s3cret", "sensor-1"):
            reject()
    """
    return engine.authenticate(username, password, client_id).allowed


def can_access(
    engine: AuthzEngine,
    username: str,
    topic: str,
    access: int,
    *,
    client_id: str = "",
    source_address: str = "",
) -> bool:
    """Return ``True`` if *username* holds *access* on *topic*.

    Example::

        can_access(engine, "alice", "devices/alice/up", Access.WRITE, client_id="c1")
    """
    return engine.authorize(username, client_id, source_address, topic, access).allowed


def require_connect(
    engine: AuthzEngine,
    username: str,
    password: str,
    client_id: str = "",
    *,
    message: str | None = None,
) -> None:
    """Assert that the credentials are accepted.

    Raises:
        AuthenticationDenied: If the engine denies the connection.
    """
    decision = engine.authenticate(username, password, client_id)
    if not decision:
        raise AuthenticationDenied(username=username, reason=decision.reason, message=message)


def require_access(
    engine: AuthzEngine,
    username: str,
    topic: str,
    access: int,
    *,
    client_id: str = "",
    source_address: str = "",
    message: str | None = None,
) -> None:
    """Assert that *username* holds *access* on *topic*.

    Raises:
        AuthorizationDenied: If no hook or rule grants the access.

    Example::

        require_access(engine, "alice", "devices/alice/up", Access.WRITE)  # raises if denied
    """
    if not can_access(
        engine, username, topic, access, client_id=client_id, source_address=source_address
    ):
        raise AuthorizationDenied(
            username=username, topic=topic, access=int(access), message=message
        )
