"""Assertion helpers for testing topic-authz decisions."""

from __future__ import annotations

from topic_authz._decision import Decision

__all__ = ["assert_allowed", "assert_denied"]


def assert_allowed(decision: Decision, *, reason: str | None = None) -> None:
    """Assert that *decision* allows, optionally with a reason substring.

    Example::

        assert_allowed(engine.authenticate("alice", "s3cret"))
    """
    if not isinstance(decision, Decision):
        raise AssertionError(f"expected a Decision, got {decision!r}")
    if not decision.allowed:
        raise AssertionError(f"expected allow, got deny ({decision.reason or 'no reason'})")
    if reason is not None and reason not in decision.reason:
        raise AssertionError(f"expected reason containing {reason!r}, got {decision.reason!r}")


def assert_denied(decision: Decision, *, reason: str | None = None) -> None:
    """Assert that *decision* denies, optionally with a reason substring.

    Example::

        assert_denied(engine.authorize("bob", "", "", "devices/alice/up", 2))
    """
    if not isinstance(decision, Decision):
        raise AssertionError(f"expected a Decision, got {decision!r}")
    if decision.allowed:
        raise AssertionError(f"expected deny, got allow ({decision.reason or 'no reason'})")
    if reason is not None and reason not in decision.reason:
        raise AssertionError(f"expected reason containing {reason!r}, got {decision.reason!r}")
