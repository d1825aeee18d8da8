"""Tests for rule evaluation and policy hooks."""

from __future__ import annotations

import logging

import pytest

from topic_authz._decision import Decision
from topic_authz._types import Access, AccessRequest, Requester
from topic_authz.policy._evaluator import evaluate, evaluate_detailed, run_hooks
from topic_authz.policy._rules import AclRule

ALICE = Requester("alice", "alice-1", "10.0.0.5")


def _request(topic: str, access: Access) -> AccessRequest:
    return AccessRequest(topic, access)


# ---------------------------------------------------------------------------
# Rule scan
# ---------------------------------------------------------------------------


class TestRuleScan:
    def test_matching_rule_allows(self):
        rules = [AclRule("*", "devices/{username}/#", 3)]
        decision = evaluate(ALICE, _request("devices/alice/up", Access.WRITE), rules)
        assert decision.allowed is True

    def test_no_rules_denies(self):
        decision = evaluate(ALICE, _request("devices/alice/up", Access.READ), [])
        assert decision.allowed is False
        assert decision.reason == "no matching rule"

    def test_bitmask_must_intersect(self):
        """READ|SUBSCRIBE never grants WRITE, even on a topic match."""
        rules = [AclRule("alice", "sensors/#", int(Access.READ | Access.SUBSCRIBE))]
        assert not evaluate(ALICE, _request("sensors/t1", Access.WRITE), rules)
        assert evaluate(ALICE, _request("sensors/t1", Access.READ), rules)
        assert evaluate(ALICE, _request("sensors/t1", Access.SUBSCRIBE), rules)

    def test_combined_request_granted_by_any_intersecting_bit(self):
        rules = [AclRule("alice", "t", int(Access.READ))]
        assert evaluate(ALICE, _request("t", Access.READ | Access.WRITE), rules)

    def test_other_users_rules_are_not_candidates(self):
        rules = [AclRule("bob", "shared/#", 7)]
        assert not evaluate(ALICE, _request("shared/x", Access.READ), rules)

    def test_global_rules_are_candidates(self):
        rules = [AclRule("*", "broadcast/+", 1)]
        assert evaluate(ALICE, _request("broadcast/news", Access.READ), rules)

    def test_any_match_allows_regardless_of_order(self):
        rules = [
            AclRule("alice", "other/#", 7),
            AclRule("alice", "t/+", 1),
            AclRule("*", "unrelated", 7),
        ]
        assert evaluate(ALICE, _request("t/x", Access.READ), rules)
        assert evaluate(ALICE, _request("t/x", Access.READ), list(reversed(rules)))

    def test_clientid_placeholder_uses_requester_client(self):
        rules = [AclRule("*", "clients/{clientid}/status", 2)]
        assert evaluate(ALICE, _request("clients/alice-1/status", Access.WRITE), rules)
        assert not evaluate(ALICE, _request("clients/other/status", Access.WRITE), rules)

    def test_empty_username_denies(self):
        rules = [AclRule("*", "#", 7)]
        anonymous = Requester("", "c1")
        assert not evaluate(anonymous, _request("t", Access.READ), rules)

    def test_empty_topic_denies(self):
        rules = [AclRule("*", "#", 7)]
        assert not evaluate(ALICE, _request("", Access.READ), rules)

    def test_repeated_evaluation_is_stable(self):
        rules = [AclRule("*", "devices/{username}/#", 3), AclRule("alice", "x", 1)]
        request = _request("devices/alice/up", Access.WRITE)
        decisions = {evaluate(ALICE, request, rules) for _ in range(20)}
        assert len(decisions) == 1

    def test_detailed_reports_match(self):
        rules = [AclRule("bob", "x", 7), AclRule("alice", "a", 1), AclRule("*", "t", 1)]
        result = evaluate_detailed(ALICE, _request("t", Access.READ), rules)
        assert result.decision.allowed
        assert result.matched == AclRule("*", "t", 1)
        assert result.rules_scanned == 2


class TestMalformedRows:
    def test_bad_row_is_skipped_and_valid_match_found(self):
        rows = [
            ("*", None, 1),
            ("alice", "a", "not-a-number"),
            ("broken",),
            ("*", "devices/{username}/#", 3),
        ]
        result = evaluate_detailed(ALICE, _request("devices/alice/up", Access.READ), rows)
        assert result.decision.allowed
        assert result.rules_skipped == 3

    def test_bad_row_is_logged(self, caplog: pytest.LogCaptureFixture):
        rows = [("*", None, 1)]
        with caplog.at_level(logging.WARNING, logger="topic_authz.store"):
            decision = evaluate(ALICE, _request("t", Access.READ), rows)
        assert not decision
        assert any("malformed ACL row" in r.message for r in caplog.records)

    def test_only_bad_rows_denies(self):
        rows = [(None, None, None), {"owner": "alice"}]
        assert not evaluate(ALICE, _request("t", Access.READ), rows)


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    def test_first_hook_decision_short_circuits(self):
        calls: list[str] = []

        def deny_all(addr, user, topic, access):
            calls.append("deny_all")
            return Decision.deny("blocked")

        def allow_all(addr, user, topic, access):
            calls.append("allow_all")
            return Decision.allow("open")

        rules = [AclRule("*", "#", 7)]
        decision = evaluate(ALICE, _request("t", Access.READ), rules, [deny_all, allow_all])
        assert not decision
        assert decision.reason == "blocked"
        assert calls == ["deny_all"]

    def test_none_defers_to_next_hook_then_rules(self):
        def abstain(addr, user, topic, access):
            return None

        rules = [AclRule("*", "t", 1)]
        assert evaluate(ALICE, _request("t", Access.READ), rules, [abstain, abstain])

    def test_hook_receives_request_fields(self):
        seen = []

        def spy(addr, user, topic, access):
            seen.append((addr, user, topic, access))
            return None

        run_hooks([spy], ALICE, _request("a/b", Access.SUBSCRIBE))
        assert seen == [("10.0.0.5", "alice", "a/b", Access.SUBSCRIBE)]

    def test_hook_can_allow_without_rules(self):
        def allow_sys(addr, user, topic, access):
            return Decision.allow("sys") if topic.startswith("$SYS/") else None

        assert evaluate(ALICE, _request("$SYS/broker/uptime", Access.SUBSCRIBE), [], [allow_sys])

    def test_failing_hook_is_ignored(self, caplog: pytest.LogCaptureFixture):
        def explode(addr, user, topic, access):
            raise RuntimeError("boom")

        rules = [AclRule("*", "t", 1)]
        with caplog.at_level(logging.ERROR, logger="topic_authz"):
            decision = evaluate(ALICE, _request("t", Access.READ), rules, [explode])
        assert decision.allowed
        assert any("explode" in r.message for r in caplog.records)
