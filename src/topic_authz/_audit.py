"""Audit logging for authentication and authorization decisions."""

from __future__ import annotations

import logging

from topic_authz._decision import Decision

__all__ = ["log_decision", "log_fail_open", "log_skipped_row"]

logger = logging.getLogger("topic_authz.audit")


def log_decision(
    *,
    event: str,
    username: str,
    decision: Decision,
    topic: str = "",
    access: int = 0,
    client_id: str = "",
    rules_scanned: int | None = None,
) -> None:
    """Log one engine decision.

    Logging levels:
    - INFO: Summary (event, username, topic, verdict)
    - DEBUG: Detailed (client id, access bits, rules scanned, reason)

    Example::

        log_decision(event="acl", username="alice", decision=decision,
                     topic="devices/alice/up", access=2, rules_scanned=4)
    """
    verdict = "ALLOW" if decision.allowed else "DENY"
    if topic:
        logger.info("%s %s: user=%r topic=%r", event, verdict, username, topic)
    else:
        logger.info("%s %s: user=%r", event, verdict, username)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "%s detail: user=%r client=%r access=%d rules_scanned=%s reason=%s",
            event,
            username,
            client_id,
            access,
            "-" if rules_scanned is None else rules_scanned,
            decision.reason or "-",
        )


def log_fail_open(*, event: str, error: BaseException) -> None:
    """Record that a store failure was resolved to Allow.

    Goes to its own ``topic_authz.fail_open`` logger so operators can route
    it to a security channel.
    """
    logging.getLogger("topic_authz.fail_open").warning(
        "FAIL-OPEN:%s allowing request after store failure: %s: %s",
        event or "<unknown>",
        type(error).__name__,
        error,
    )


def log_skipped_row(*, username: str, error: BaseException) -> None:
    """Record a malformed store row that was skipped during evaluation."""
    logging.getLogger("topic_authz.store").warning(
        "Skipping malformed ACL row while evaluating for %r: %s", username, error
    )
