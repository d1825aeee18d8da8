"""Policy engine — topic matching, ACL rules, hooks and evaluation."""

from topic_authz.policy._evaluator import (
    EvaluationResult,
    evaluate,
    evaluate_detailed,
    run_hooks,
)
from topic_authz.policy._hooks import address_bypass, system_topic_subscribe
from topic_authz.policy._matcher import expand_pattern, matches
from topic_authz.policy._rules import GLOBAL_OWNER, AclRule

__all__ = [
    "GLOBAL_OWNER",
    "AclRule",
    "EvaluationResult",
    "address_bypass",
    "evaluate",
    "evaluate_detailed",
    "expand_pattern",
    "matches",
    "run_hooks",
    "system_topic_subscribe",
]
