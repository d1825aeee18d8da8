"""Store access — table schema, read-only queries, and the connection pool."""

from topic_authz.store._pool import Checkout, PoolManager
from topic_authz.store._queries import CredentialStore, UserRecord
from topic_authz.store._schema import StoreSchema

__all__ = ["Checkout", "CredentialStore", "PoolManager", "StoreSchema", "UserRecord"]
