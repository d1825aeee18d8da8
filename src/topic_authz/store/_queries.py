"""Read-only queries against the credential/policy store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Connection, literal, or_, select, type_coerce
from sqlalchemy.types import NullType

from topic_authz.exceptions import StoreProtocolError
from topic_authz.policy._rules import GLOBAL_OWNER
from topic_authz.store._schema import StoreSchema

__all__ = ["CredentialStore", "UserRecord"]


@dataclass(frozen=True, slots=True)
class UserRecord:
    """A user row as seen by the engine.

    Attributes:
        username: Unique key.
        password_hash: Stored hash in the format of ``scheme``.
        enabled: Disabled accounts never authenticate.
        scheme: Identifier of the hash scheme.
        salt: Per-user salt for schemes that use one.
    """

    username: str
    password_hash: str
    enabled: bool
    scheme: str
    salt: str | None = None


class CredentialStore:
    """The three queries the engine issues, built with SQLAlchemy Core.

    Every method takes an open ``Connection`` so the caller controls
    checkout, deadline and return to the pool.

    Example::

        store = CredentialStore()
        with engine.connect() as conn:
            user = store.fetch_user(conn, "alice")
    """

    def __init__(
        self, schema: StoreSchema | None = None, *, default_scheme: str = "bcrypt"
    ) -> None:
        self.schema = schema if schema is not None else StoreSchema()
        self.default_scheme = default_scheme

    def fetch_user(self, conn: Connection, username: str) -> UserRecord | None:
        """Fetch the user row for *username*, or ``None`` if there is none.

        Raises:
            StoreProtocolError: If the row cannot be decoded.
        """
        users = self.schema.users
        # The enabled flag is read undecoded so loosely typed columns cannot
        # pass arbitrary truthy values through the Boolean type.
        stmt = select(
            users.c.password_hash,
            type_coerce(users.c.enabled, NullType()).label("enabled"),
            users.c.scheme,
            users.c.salt,
        ).where(users.c.username == username)
        row = conn.execute(stmt).first()
        if row is None:
            return None
        password_hash, enabled, scheme, salt = row
        if not isinstance(password_hash, str):
            raise StoreProtocolError(f"User {username!r} has an undecodable password hash")
        return UserRecord(
            username=username,
            password_hash=password_hash,
            enabled=_decode_enabled(username, enabled),
            scheme=scheme or self.default_scheme,
            salt=salt,
        )

    def has_client_binding(self, conn: Connection, username: str, client_id: str) -> bool:
        """Whether a ``(username, client_id)`` binding row exists."""
        bindings = self.schema.client_bindings
        stmt = (
            select(literal(1))
            .select_from(bindings)
            .where(bindings.c.username == username, bindings.c.client_id == client_id)
            .limit(1)
        )
        return conn.execute(stmt).first() is not None

    def fetch_rules(self, conn: Connection, username: str) -> Sequence[Any]:
        """Fetch ACL rows owned by *username* or by the global owner ``'*'``.

        Rows come back undecoded (``owner``, ``pattern``, ``access``) so a
        single bad row can be skipped by the evaluator.
        """
        acls = self.schema.acls
        stmt = select(
            acls.c.username.label("owner"),
            acls.c.pattern,
            acls.c.acc.label("access"),
        ).where(or_(acls.c.username == username, acls.c.username == GLOBAL_OWNER))
        return conn.execute(stmt).all()


def _decode_enabled(username: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise StoreProtocolError(f"User {username!r} has an undecodable enabled flag: {value!r}")
