"""Tests for Access, coerce_access, the request types and Decision."""

from __future__ import annotations

import dataclasses

import pytest

from topic_authz._decision import Decision
from topic_authz._types import Access, AccessRequest, Requester, coerce_access


class TestAccess:
    def test_values(self):
        assert Access.READ == 1
        assert Access.WRITE == 2
        assert Access.SUBSCRIBE == 4

    def test_combination(self):
        assert Access.READ | Access.SUBSCRIBE == 5
        assert Access.WRITE not in (Access.READ | Access.SUBSCRIBE)


class TestCoerceAccess:
    @pytest.mark.parametrize("value", range(1, 8))
    def test_valid_masks(self, value):
        assert int(coerce_access(value)) == value
        assert isinstance(coerce_access(value), Access)

    @pytest.mark.parametrize("value", [0, -1, 8, 9, 64])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError):
            coerce_access(value)

    @pytest.mark.parametrize("value", [True, "1", 1.0, None])
    def test_non_integer(self, value):
        with pytest.raises(ValueError, match="integer bitmask"):
            coerce_access(value)


class TestRequestTypes:
    def test_requester_defaults(self):
        requester = Requester("alice")
        assert requester.client_id == ""
        assert requester.source_address == ""

    def test_frozen(self):
        request = AccessRequest("a/b", Access.READ)
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.topic = "c"  # type: ignore[misc]


class TestDecision:
    def test_truthiness(self):
        assert Decision.allow()
        assert not Decision.deny()

    def test_reason(self):
        assert Decision.deny("no matching rule").reason == "no matching rule"

    def test_str(self):
        assert str(Decision.allow("rule *:a/#")) == "allow (rule *:a/#)"
        assert str(Decision.deny()) == "deny"

    def test_equality_and_hash(self):
        assert Decision.allow("x") == Decision(True, "x")
        assert len({Decision.allow("x"), Decision(True, "x")}) == 1
