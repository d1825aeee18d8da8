"""topic-authz — Authentication and topic ACLs for MQTT brokers, backed by SQL.

Checks broker clients against users and ACL rules kept in a relational
database, with ``+``/``#`` wildcards, ``{username}``/``{clientid}``
placeholders, pluggable password hashes and an explicit fail-open /
fail-closed policy for store outages.

Example::

    from topic_authz import Access, AuthzEngine, EngineConfig

    engine = AuthzEngine(EngineConfig(dsn="postgresql+psycopg://mqtt@db/mqtt"))

    engine.authenticate("alice", "s3cret", "sensor-1")          # Decision
    engine.authorize("alice", "sensor-1", "10.0.0.7",
                     "devices/alice/telemetry", Access.WRITE)   # Decision
"""

from importlib.metadata import PackageNotFoundError, version

from topic_authz._checks import can_access, can_connect, require_access, require_connect
from topic_authz._decision import Decision
from topic_authz._engine import AuthzEngine
from topic_authz._resilience import FailurePolicy
from topic_authz._types import Access, AccessRequest, PolicyHook, Requester
from topic_authz.config._config import EngineConfig
from topic_authz.credentials import SchemeRegistry, hash_scheme, verify
from topic_authz.exceptions import (
    AuthenticationDenied,
    AuthorizationDenied,
    ConfigurationError,
    StoreError,
    StoreProtocolError,
    StoreTimeout,
    StoreUnavailable,
    TopicAuthzError,
)
from topic_authz.policy import AclRule, address_bypass, evaluate, matches, system_topic_subscribe
from topic_authz.store import PoolManager, StoreSchema

try:
    __version__ = version("topic-authz")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "__version__",
    "Access",
    "AccessRequest",
    "AclRule",
    "AuthenticationDenied",
    "AuthorizationDenied",
    "AuthzEngine",
    "ConfigurationError",
    "Decision",
    "EngineConfig",
    "FailurePolicy",
    "PolicyHook",
    "PoolManager",
    "Requester",
    "SchemeRegistry",
    "StoreError",
    "StoreProtocolError",
    "StoreSchema",
    "StoreTimeout",
    "StoreUnavailable",
    "TopicAuthzError",
    "address_bypass",
    "can_access",
    "can_connect",
    "evaluate",
    "hash_scheme",
    "matches",
    "require_access",
    "require_connect",
    "system_topic_subscribe",
    "verify",
]
