"""Decision — the only value returned across the engine boundary."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Decision"]


@dataclass(frozen=True, slots=True)
class Decision:
    """Allow or Deny, with a short reason for logging.

    There is no "unknown" state: ambiguous outcomes are resolved by the
    failure policy before a ``Decision`` is built.

    Example::

        decision = engine.authorize("alice", "c1", "10.0.0.5", "devices/alice/up", Access.WRITE)
        if decision:
            ...
    """

    allowed: bool
    reason: str = ""

    @classmethod
    def allow(cls, reason: str = "") -> Decision:
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, reason: str = "") -> Decision:
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

    def __str__(self) -> str:
        verdict = "allow" if self.allowed else "deny"
        return f"{verdict} ({self.reason})" if self.reason else verdict
