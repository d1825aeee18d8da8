"""FailurePolicy — deadline, fail-open/closed and fault containment."""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from topic_authz._audit import log_fail_open
from topic_authz._decision import Decision
from topic_authz.config._config import DEFAULT_TIMEOUT_MS
from topic_authz.exceptions import (
    ConfigurationError,
    StoreProtocolError,
    StoreTimeout,
    StoreUnavailable,
)

__all__ = ["FailurePolicy"]

logger = logging.getLogger("topic_authz")


class FailurePolicy:
    """Runs store-dependent operations under a deadline and never raises.

    Outcomes of :meth:`wrap`:

    - the operation's own ``Decision`` when it finishes in time;
    - on ``StoreTimeout`` or ``StoreUnavailable`` (SQLAlchemy errors count
      as the latter): Allow when failing open, Deny otherwise, with a
      warning either way;
    - on ``StoreProtocolError``: Deny, logged;
    - on anything else: Deny, logged with its traceback.

    Operations run on worker threads. When the deadline expires the caller
    is answered at once and ``on_timeout`` runs so the abandoned operation
    gives up its pool slot; the worker itself unwinds in the background.

    Example::

        policy = FailurePolicy(timeout_ms=1500, fail_open=False)
        decision = policy.wrap(lambda: check_store(), event="auth")
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        fail_open: bool = False,
        *,
        max_workers: int = 32,
    ) -> None:
        if timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {timeout_ms!r}")
        self.timeout_ms = timeout_ms
        self.fail_open = fail_open
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="topic-authz"
        )

    def wrap(
        self,
        operation: Callable[[], Decision],
        *,
        timeout_ms: int | None = None,
        fail_open: bool | None = None,
        event: str = "",
        on_timeout: Callable[[], None] | None = None,
    ) -> Decision:
        """Run *operation* and turn every failure into a ``Decision``.

        Args:
            operation: Zero-argument callable doing the store work.
            timeout_ms: Override of the deadline for this call.
            fail_open: Override of the fail-open setting for this call.
            event: Label used in log records (``"auth"``, ``"acl"``...).
            on_timeout: Called from the waiting thread once the deadline has
                expired, to release what the abandoned operation holds.

        Returns:
            The operation's decision, or the policy's verdict on failure.
        """
        deadline_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        open_on_failure = self.fail_open if fail_open is None else fail_open
        try:
            return self._run_bounded(operation, deadline_ms, on_timeout)
        except (StoreTimeout, StoreUnavailable) as exc:
            if open_on_failure:
                log_fail_open(event=event, error=exc)
                return Decision.allow(f"fail-open after {type(exc).__name__}")
            logger.warning(
                "%s denied after store failure: %s: %s",
                event or "operation",
                type(exc).__name__,
                exc,
            )
            return Decision.deny(type(exc).__name__)
        except StoreProtocolError as exc:
            logger.warning("%s denied on undecodable store record: %s", event or "operation", exc)
            return Decision.deny("malformed store record")
        except Exception:
            logger.exception("Unexpected error during %s; denying", event or "operation")
            return Decision.deny("internal error")

    def _run_bounded(
        self,
        operation: Callable[[], Decision],
        deadline_ms: int,
        on_timeout: Callable[[], None] | None,
    ) -> Decision:
        future = self._executor.submit(operation)
        try:
            return future.result(timeout=deadline_ms / 1000.0)
        except concurrent.futures.TimeoutError:
            if not future.cancel() and on_timeout is not None:
                try:
                    on_timeout()
                except Exception:
                    logger.exception("Releasing an abandoned store operation failed")
            raise StoreTimeout(f"store operation exceeded {deadline_ms} ms") from None
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc

    def close(self) -> None:
        """Stop accepting work. Abandoned operations finish in the background."""
        self._executor.shutdown(wait=False, cancel_futures=True)
