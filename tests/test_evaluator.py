"""
Tests for the short-circuiting rule evaluator.
"""

import pytest

from auval.policy.catalog import RuleCatalog
from auval.policy.context import EvaluationTrace
from auval.policy.definitions import RuleDefinition
from auval.policy.evaluator import RuleEvaluator
from auval.policy.types import (
    ALL, DEFAULT_DENY, ERR, NEXT, OK, AuthorizationResult, Decision, Err, Ok, Verdict
)


def evaluator(*rules):
    return RuleEvaluator(RuleCatalog(rules))


class TestRuleEvaluator:
    """Test rule scanning."""

    def test_empty_catalog_default_deny(self):
        """No rules means a default deny."""
        decision = evaluator().decide("s", "o", "read", {})
        assert decision == Decision(Verdict.DENY, DEFAULT_DENY)

    def test_first_decision_wins(self):
        """Later rules are not evaluated after a decision."""
        calls = []

        def counted(result):
            def body(b):
                calls.append(result)
                return result
            return body

        trace = EvaluationTrace()
        decision = evaluator(
            RuleDefinition("pass", ALL, body=counted(NEXT)),
            RuleDefinition("first", ALL, body=counted(OK)),
            RuleDefinition("second", ALL, body=counted(ERR)),
        ).decide("s", "o", "read", {}, trace)

        assert decision.rule_id == "first"
        assert calls == [NEXT, OK]
        assert trace.rules_evaluated == ["pass", "first"]

    def test_deny_decides_too(self):
        """A deny stops the scan just like an allow."""
        decision = evaluator(
            RuleDefinition("deny", "write", body=lambda b: ERR),
            RuleDefinition("allow", ALL, body=lambda b: OK),
        ).decide("s", "o", "write", {})
        assert decision == Decision(Verdict.DENY, "deny")

    def test_action_filtering(self):
        """Rules not covering the action are never tried."""
        calls = []
        trace = EvaluationTrace()
        decision = evaluator(
            RuleDefinition("rw", ["read", "write"], body=lambda b: calls.append(1) or OK),
        ).decide("s", "o", "delete", {}, trace)
        assert decision.rule_id == DEFAULT_DENY
        assert calls == []
        assert trace.rules_evaluated == []

    def test_declined_default_deny_falls_through(self):
        """Err(DEFAULT_DENY, _) declines and the scan continues."""
        decision = evaluator(
            RuleDefinition("decline", ALL, body=lambda b: Err(DEFAULT_DENY, {"x": 1})),
            RuleDefinition("allow", ALL, body=lambda b: True),
        ).decide("s", "o", "read", {})
        assert decision == Decision(Verdict.ALLOW, "allow")


class TestAuthorizationResult:
    """Test result assembly."""

    def test_parameters_prefixed(self):
        """Subject, object, action and context come first, then rule params."""
        context = {"ip": "10.0.0.1"}
        result = evaluator(
            RuleDefinition("owner", ALL, body=lambda b: Ok("ignored", [("why", "owner"), ("level", 2)])),
        ).evaluate("alice", "doc", "edit", context)

        assert result.verdict is Verdict.ALLOW
        assert result.allowed
        assert result.rule_id == "owner"
        assert result.params == (
            ("subject", "alice"),
            ("object", "doc"),
            ("action", "edit"),
            ("context", context),
            ("why", "owner"),
            ("level", 2),
        )
        assert result.rule_params == (("why", "owner"), ("level", 2))
        assert result.subject == "alice"
        assert result.object == "doc"
        assert result.action == "edit"
        assert result.context is context
        assert result.param("why") == "owner"
        assert result.param("missing", "default") == "default"

    def test_unpacks_as_triple(self):
        """Results unpack into verdict, rule id and params."""
        verdict, rule_id, params = evaluator().evaluate("s", "o", "read", {})
        assert verdict is Verdict.DENY
        assert rule_id == DEFAULT_DENY
        assert [name for name, _ in params] == ["subject", "object", "action", "context"]

    def test_unhashable(self):
        """Results carry the context dict and cannot be hashed."""
        result = evaluator().evaluate("s", "o", "read", {})
        assert AuthorizationResult.__hash__ is None
        with pytest.raises(TypeError):
            hash(result)

    def test_to_dict(self):
        """Results serialize for audit logs."""
        result = evaluator(RuleDefinition("r", ALL, body=lambda b: Err({"why": "locked"}))).evaluate(
            "s", "o", "write", {}
        )
        assert result.to_dict() == {
            "verdict": "deny",
            "rule_id": "r",
            "parameters": [
                ["subject", "s"], ["object", "o"], ["action", "write"], ["context", {}], ["why", "locked"]
            ],
        }
