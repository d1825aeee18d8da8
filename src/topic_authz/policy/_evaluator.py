"""Policy evaluation — hooks first, then an allow-list scan of ACL rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from topic_authz._audit import log_skipped_row
from topic_authz._decision import Decision
from topic_authz._types import AccessRequest, PolicyHook, Requester
from topic_authz.exceptions import StoreProtocolError
from topic_authz.policy._matcher import matches
from topic_authz.policy._rules import AclRule

__all__ = ["EvaluationResult", "evaluate", "evaluate_detailed", "run_hooks"]

logger = logging.getLogger("topic_authz")


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Decision plus bookkeeping used by the audit log."""

    decision: Decision
    rules_scanned: int = 0
    rules_skipped: int = 0
    matched: AclRule | None = None


def run_hooks(
    hooks: Sequence[PolicyHook],
    requester: Requester,
    request: AccessRequest,
) -> Decision | None:
    """Return the first non-``None`` hook decision, or ``None``.

    A hook that raises is logged and treated as having no opinion.
    """
    for hook in hooks:
        try:
            decision = hook(
                requester.source_address, requester.username, request.topic, request.access
            )
        except Exception:
            logger.exception(
                "Policy hook %s failed for user %r on %r; ignoring it",
                getattr(hook, "__name__", repr(hook)),
                requester.username,
                request.topic,
            )
            continue
        if decision is not None:
            return decision
    return None


def evaluate_detailed(
    requester: Requester,
    request: AccessRequest,
    rules: Iterable[Any],
    hooks: Sequence[PolicyHook] = (),
) -> EvaluationResult:
    """Like :func:`evaluate`, but also reports scan statistics."""
    hooked = run_hooks(hooks, requester, request)
    if hooked is not None:
        return EvaluationResult(hooked)

    if not requester.username or not request.topic:
        return EvaluationResult(Decision.deny("missing username or topic"))

    scanned = skipped = 0
    for row in rules:
        if isinstance(row, AclRule):
            rule = row
        else:
            try:
                rule = AclRule.from_row(row)
            except StoreProtocolError as exc:
                skipped += 1
                log_skipped_row(username=requester.username, error=exc)
                continue
        if not rule.applies_to(requester.username):
            continue
        scanned += 1
        if rule.grants(request.access) and matches(
            rule.pattern, request.topic, requester.username, requester.client_id
        ):
            return EvaluationResult(
                Decision.allow(f"rule {rule.owner}:{rule.pattern}"),
                rules_scanned=scanned,
                rules_skipped=skipped,
                matched=rule,
            )
    return EvaluationResult(
        Decision.deny("no matching rule"), rules_scanned=scanned, rules_skipped=skipped
    )


def evaluate(
    requester: Requester,
    request: AccessRequest,
    rules: Iterable[Any],
    hooks: Sequence[PolicyHook] = (),
) -> Decision:
    """Decide whether *requester* may perform *request*.

    Hooks run first, in order; the first one returning a ``Decision`` wins.
    Otherwise candidate rules (owned by the requester or global) are
    scanned, and any rule whose bitmask intersects the requested access and
    whose pattern matches the topic grants access. No match denies. There
    are no deny rules and no rule precedence.

    Rows that cannot be decoded are skipped and logged; the scan continues.

    Args:
        requester: Who is asking.
        request: Topic and access bits being requested.
        rules: ``AclRule`` objects or raw store rows.
        hooks: Ordered policy hooks.

    Returns:
        The resulting ``Decision``.

    Example::

        decision = evaluate(
            Requester("alice", "c1"),
            AccessRequest("devices/alice/up", Access.WRITE),
            [AclRule("*", "devices/{username}/#", 2)],
        )
    """
    return evaluate_detailed(requester, request, rules, hooks).decision
