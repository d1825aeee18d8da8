"""Table definitions for the credential/policy store."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKeyConstraint,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    true,
)

__all__ = ["StoreSchema"]


@dataclass(frozen=True)
class StoreSchema:
    """The three read-only tables the engine queries.

    Table names are configurable so the engine can sit on an existing
    database. ``metadata.create_all`` is provided for tests and tooling;
    production schemas are provisioned separately.

    Attributes:
        users: ``username``, ``password_hash``, ``enabled``, ``scheme``, ``salt``.
        client_bindings: ``username``, ``client_id``.
        acls: ``username`` (owner, ``'*'`` for global), ``pattern``, ``acc``.

    Example::

        schema = StoreSchema(users_table="mqtt_users")
        schema.metadata.create_all(engine)
    """

    users_table: str = "users"
    bindings_table: str = "client_bindings"
    acls_table: str = "acls"
    metadata: MetaData = field(default_factory=MetaData, compare=False)
    users: Table = field(init=False, repr=False, compare=False)
    client_bindings: Table = field(init=False, repr=False, compare=False)
    acls: Table = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        users = Table(
            self.users_table,
            self.metadata,
            Column("username", Text, primary_key=True),
            Column("password_hash", Text, nullable=False),
            Column("enabled", Boolean, nullable=False, server_default=true()),
            Column("scheme", String(32), nullable=True),
            Column("salt", Text, nullable=True),
        )
        bindings = Table(
            self.bindings_table,
            self.metadata,
            Column("username", Text, nullable=False),
            Column("client_id", Text, nullable=False),
            PrimaryKeyConstraint("username", "client_id"),
            ForeignKeyConstraint(["username"], [users.c.username], ondelete="CASCADE"),
        )
        acls = Table(
            self.acls_table,
            self.metadata,
            Column("username", Text, nullable=False),
            Column("pattern", Text, nullable=False),
            Column("acc", Integer, nullable=False),
            PrimaryKeyConstraint("username", "pattern"),
            Index(f"{self.acls_table}_user_idx", "username"),
        )
        # Frozen dataclass: attach the Table objects once.
        object.__setattr__(self, "users", users)
        object.__setattr__(self, "client_bindings", bindings)
        object.__setattr__(self, "acls", acls)
