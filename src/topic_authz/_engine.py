"""AuthzEngine — the explicit context behind every authenticate/authorize call."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from topic_authz._audit import log_decision
from topic_authz._decision import Decision
from topic_authz._resilience import FailurePolicy
from topic_authz._types import AccessRequest, PolicyHook, Requester, coerce_access
from topic_authz.config._config import EngineConfig, safe_dsn
from topic_authz.credentials._registry import SchemeRegistry, get_default_schemes
from topic_authz.credentials._verify import verify
from topic_authz.exceptions import ConfigurationError
from topic_authz.policy._evaluator import EvaluationResult, evaluate_detailed, run_hooks
from topic_authz.store._pool import Checkout, EngineFactory, PoolManager
from topic_authz.store._queries import CredentialStore
from topic_authz.store._schema import StoreSchema

__all__ = ["AuthzEngine"]

logger = logging.getLogger("topic_authz")


class AuthzEngine:
    """Authenticates broker clients and authorizes topic operations.

    One instance is built at broker start-up and shared by every event
    handler. It holds the configuration, the connection pool, the hash
    scheme registry and the policy hooks; nothing else is shared between
    calls and nothing read from the store is cached.

    Both entry points are safe to call concurrently from many threads and
    always return a ``Decision``.

    Args:
        config: Validated engine settings.
        hooks: Ordered policy hooks consulted before ACL rules.
        schemes: Hash scheme registry. Defaults to the global one.
        schema: Table layout of the store.
        engine_factory: Callable creating the SQLAlchemy engine; defaults to
            ``sqlalchemy.create_engine``.

    Raises:
        ConfigurationError: If the DSN cannot be parsed or the configured
            default hash scheme is not registered.

    Example::

        engine = AuthzEngine(EngineConfig(dsn="postgresql+psycopg://mqtt@db/mqtt"))
        if engine.authenticate("alice", "s3cret", "sensor-1"):
            ...
        engine.authorize("alice", "sensor-1", "10.0.0.7", "devices/alice/up", Access.WRITE)
    """

    def __init__(
        self,
        config: EngineConfig,
        *,
        hooks: Iterable[PolicyHook] = (),
        schemes: SchemeRegistry | None = None,
        schema: StoreSchema | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        try:
            make_url(config.dsn)
        except (ArgumentError, ValueError) as exc:
            raise ConfigurationError(f"dsn {safe_dsn(config.dsn)!r} is not a valid URL") from exc
        self.schemes = schemes if schemes is not None else get_default_schemes()
        if not self.schemes.has_scheme(config.default_scheme):
            raise ConfigurationError(
                f"default_scheme {config.default_scheme!r} is not registered; "
                f"known schemes: {self.schemes.names()}"
            )

        self.config = config
        self.hooks: tuple[PolicyHook, ...] = tuple(hooks)
        self.store = CredentialStore(schema, default_scheme=config.default_scheme)
        if engine_factory is None:
            self.pools = PoolManager(config)
        else:
            self.pools = PoolManager(config, engine_factory=engine_factory)
        self.failure_policy = FailurePolicy(
            config.timeout_ms,
            config.fail_open,
            max_workers=config.worker_threads,
        )
        if config.fail_open:
            logger.warning("topic-authz running with fail_open=True; store outages will allow")

    @classmethod
    def from_options(cls, options: Mapping[str, str], **kwargs: Any) -> AuthzEngine:
        """Build an engine from a broker-style option map."""
        return cls(EngineConfig.from_options(options), **kwargs)

    # -- entry points -----------------------------------------------------

    def authenticate(self, username: str, password: str, client_id: str = "") -> Decision:
        """Decide whether a client may connect with these credentials.

        Empty credentials, unknown users, disabled users, wrong passwords
        and (when enforced) missing client bindings all deny.
        """
        if not username or not password:
            decision = Decision.deny("empty username or password")
        else:
            checkout = Checkout()
            decision = self.failure_policy.wrap(
                lambda: self._authenticate(username, password, client_id, checkout),
                event="auth",
                on_timeout=checkout.abandon,
            )
        if self.config.log_decisions:
            log_decision(event="auth", username=username, decision=decision, client_id=client_id)
        return decision

    def authorize(
        self,
        username: str,
        client_id: str,
        source_address: str,
        topic: str,
        access: int,
    ) -> Decision:
        """Decide whether a client may read, write or subscribe to *topic*.

        Raises:
            ValueError: If *access* is not a valid READ/WRITE/SUBSCRIBE
                bitmask. This is a protocol fault, not a deny.
        """
        requester = Requester(username, client_id, source_address)
        request = AccessRequest(topic, coerce_access(access))
        rules_scanned: int | None = None

        hooked = run_hooks(self.hooks, requester, request)
        if hooked is not None:
            decision = hooked
        elif not username or not topic:
            decision = Decision.deny("missing username or topic")
        else:
            checkout = Checkout()

            def operation() -> Decision:
                nonlocal rules_scanned
                result = self._evaluate_rules(requester, request, checkout)
                rules_scanned = result.rules_scanned
                return result.decision

            decision = self.failure_policy.wrap(
                operation, event="acl", on_timeout=checkout.abandon
            )

        if self.config.log_decisions:
            log_decision(
                event="acl",
                username=username,
                decision=decision,
                topic=topic,
                access=int(request.access),
                client_id=client_id,
                rules_scanned=rules_scanned,
            )
        return decision

    # -- lifecycle --------------------------------------------------------

    def close(self) -> None:
        """Release the pool and worker threads."""
        self.failure_policy.close()
        self.pools.teardown()

    def __enter__(self) -> AuthzEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- store work (runs on a FailurePolicy worker) ------------------------

    def _authenticate(
        self, username: str, password: str, client_id: str, checkout: Checkout
    ) -> Decision:
        with self.pools.connect(checkout) as conn:
            user = self.store.fetch_user(conn, username)
            if user is None:
                return Decision.deny("unknown user")
            if not user.enabled:
                return Decision.deny("user disabled")
            if not verify(
                user.password_hash, user.salt, password, user.scheme, registry=self.schemes
            ):
                return Decision.deny("password mismatch")
            if self.config.enforce_client_binding and not self.store.has_client_binding(
                conn, username, client_id
            ):
                return Decision.deny("client id not bound to user")
        return Decision.allow("credentials verified")

    def _evaluate_rules(
        self, requester: Requester, request: AccessRequest, checkout: Checkout
    ) -> EvaluationResult:
        with self.pools.connect(checkout) as conn:
            rows = self.store.fetch_rules(conn, requester.username)
        return evaluate_detailed(requester, request, rows)
