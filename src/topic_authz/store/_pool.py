"""PoolManager — lazily created, shared SQLAlchemy connection pool."""

from __future__ import annotations

import contextlib
import logging
import math
import threading
import time
from collections.abc import Callable, Generator
from typing import Any

from sqlalchemy import Connection, Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, DisconnectionError
from sqlalchemy.pool import QueuePool

from topic_authz.config._config import EngineConfig, safe_dsn
from topic_authz.exceptions import StoreTimeout, StoreUnavailable

__all__ = ["Checkout", "PoolManager"]

logger = logging.getLogger("topic_authz")

EngineFactory = Callable[..., Engine]

# libpq rounds connect_timeout values below 2 up to 2 seconds.
_MIN_PG_CONNECT_TIMEOUT = 2


class _ReadWriteLock:
    """Many concurrent readers or a single writer.

    Both sides accept a timeout in seconds and raise ``TimeoutError`` when
    it expires before the lock is granted.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextlib.contextmanager
    def read(self, timeout: float | None = None) -> Generator[None, None, None]:
        with self._cond:
            if not self._cond.wait_for(lambda: not self._writing, timeout):
                raise TimeoutError("read lock not granted in time")
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self, timeout: float | None = None) -> Generator[None, None, None]:
        with self._cond:
            granted = self._cond.wait_for(
                lambda: not self._writing and not self._readers, timeout
            )
            if not granted:
                raise TimeoutError("write lock not granted in time")
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class Checkout:
    """One store call's hold on a pooled connection.

    The call runs on a worker thread; the caller waiting for it may give up
    and call :meth:`abandon` from its own thread. Abandoning interrupts the
    running statement and detaches the connection from the pool, so its
    slot is free at once and the connection itself is closed, not reused,
    when the call unwinds.

    Example::

        checkout = Checkout()
        with pools.connect(checkout) as conn:  # on a worker thread
            ...
        checkout.abandon()                      # from the waiting thread
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connection: Connection | None = None
        self.abandoned = False

    def attach(self, connection: Connection) -> None:
        """Record the connection the call is about to use.

        Raises:
            StoreTimeout: If the call was abandoned before it got a connection.
        """
        with self._lock:
            if self.abandoned:
                raise StoreTimeout("store call abandoned before it started")
            self._connection = connection

    def release(self) -> None:
        """Mark the connection as no longer in use by the call."""
        with self._lock:
            self._connection = None

    def abandon(self) -> None:
        """Give up on the call and free its pool slot."""
        with self._lock:
            self.abandoned = True
            connection, self._connection = self._connection, None
            if connection is not None:
                _cut_loose(connection)


def _cut_loose(connection: Connection) -> None:
    pooled = connection.connection
    dbapi_connection = pooled.dbapi_connection
    # psycopg exposes cancel(), sqlite3 exposes interrupt(); both may be
    # called from a thread other than the one running the statement.
    for name in ("cancel", "interrupt"):
        interrupt = getattr(dbapi_connection, name, None)
        if interrupt is not None:
            try:
                interrupt()
            except Exception as exc:
                logger.warning("Could not interrupt abandoned store call: %s", exc)
            break
    pooled.detach()


class PoolManager:
    """Owns the single connection pool of an engine context.

    The pool is created on the first :meth:`ensure` call. The initialised
    fast path only takes the read side of a read/write lock; creation takes
    the write side and re-checks, so callers racing through the first call
    end up with the same pool, or all see the same failure. No caller waits
    for the lock longer than the configured timeout.

    Example::

        pools = PoolManager(EngineConfig(dsn="postgresql+psycopg://mqtt@db/mqtt"))
        with pools.connect() as conn:
            ...
        pools.teardown()
    """

    def __init__(
        self,
        config: EngineConfig,
        *,
        engine_factory: EngineFactory = create_engine,
    ) -> None:
        self.config = config
        self._engine_factory = engine_factory
        self._lock = _ReadWriteLock()
        self._engine: Engine | None = None
        self._last_error: StoreUnavailable | None = None
        self._generation = 0

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def ensure(self) -> Engine:
        """Return the shared engine, creating it on first use.

        Raises:
            StoreUnavailable: If the pool cannot be created or the store
                does not answer the initial ping.
            StoreTimeout: If another caller's initialisation holds the lock
                past the configured timeout.
        """
        timeout = self.config.timeout_seconds
        # Snapshot before waiting so callers queued behind a failed attempt
        # share its error instead of retrying.
        seen_generation = self._generation
        try:
            with self._lock.read(timeout):
                engine = self._engine
            if engine is not None:
                return engine

            with self._lock.write(timeout):
                if self._engine is not None:
                    return self._engine
                if self._generation != seen_generation and self._last_error is not None:
                    raise StoreUnavailable(str(self._last_error)) from self._last_error
                try:
                    self._engine = self._initialize()
                except StoreUnavailable as exc:
                    self._last_error = exc
                    raise
                finally:
                    self._generation += 1
                self._last_error = None
                return self._engine
        except TimeoutError:
            raise StoreTimeout(
                f"store pool initialisation did not finish within {self.config.timeout_ms} ms"
            ) from None

    @contextlib.contextmanager
    def connect(self, checkout: Checkout | None = None) -> Generator[Connection, None, None]:
        """Check a connection out of the pool for the duration of the block.

        With a *checkout*, the connection can be abandoned from another
        thread while the block runs.
        """
        engine = self.ensure()
        with engine.connect() as conn:
            if checkout is None:
                yield conn
                return
            checkout.attach(conn)
            try:
                yield conn
            finally:
                checkout.release()

    def teardown(self) -> None:
        """Dispose the pool. A later :meth:`ensure` creates a new one."""
        with self._lock.write():
            engine, self._engine = self._engine, None
            self._last_error = None
            self._generation += 1
        if engine is not None:
            engine.dispose()
            logger.info("Store pool for %s closed", safe_dsn(self.config.dsn))

    def _pool_options(self) -> dict[str, Any]:
        cfg = self.config
        options: dict[str, Any] = {
            "poolclass": QueuePool,
            "pool_size": cfg.pool_min_size,
            "max_overflow": cfg.pool_max_size - cfg.pool_min_size,
            "pool_timeout": cfg.timeout_seconds,
            "pool_pre_ping": True,
        }
        connect_args = _driver_timeouts(cfg)
        if connect_args:
            options["connect_args"] = connect_args
        return options

    def _initialize(self) -> Engine:
        dsn = safe_dsn(self.config.dsn)
        try:
            engine = self._engine_factory(self.config.dsn, **self._pool_options())
        except Exception as exc:
            raise StoreUnavailable(f"could not create store pool for {dsn}: {exc}") from exc

        _install_idle_expiry(engine, self.config.pool_max_idle_seconds)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            engine.dispose()
            raise StoreUnavailable(f"store at {dsn} did not answer: {exc}") from exc

        logger.info(
            "Store pool initialised for %s (max=%d, min=%d)",
            dsn,
            self.config.pool_max_size,
            self.config.pool_min_size,
        )
        return engine


def _driver_timeouts(config: EngineConfig) -> dict[str, Any]:
    """Driver-level connect and statement timeouts derived from ``timeout_ms``."""
    try:
        backend = make_url(config.dsn).get_backend_name()
    except (ArgumentError, ValueError):
        return {}
    if backend == "postgresql":
        return {
            "connect_timeout": max(_MIN_PG_CONNECT_TIMEOUT, math.ceil(config.timeout_seconds)),
            "options": f"-c statement_timeout={config.timeout_ms}",
        }
    if backend == "sqlite":
        return {"timeout": config.timeout_seconds}
    return {}


def _install_idle_expiry(engine: Engine, max_idle_seconds: int) -> None:
    """Discard connections that sat idle in the pool for too long.

    ``pool_recycle`` counts from when a connection was opened, not from when
    it was last used. Raising ``DisconnectionError`` on checkout makes the
    pool discard the connection and hand out a fresh one.
    """

    @event.listens_for(engine, "checkin")
    def _mark_idle(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["idle_since"] = time.monotonic()

    @event.listens_for(engine, "checkout")
    def _check_idle(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        idle_since = connection_record.info.pop("idle_since", None)
        if idle_since is None:
            return
        idle = time.monotonic() - idle_since
        if idle > max_idle_seconds:
            raise DisconnectionError(f"connection idle for {idle:.0f}s")
