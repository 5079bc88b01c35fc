"""
Rule evaluation.

Rules handling the requested action are tried in declaration order until one
decides. If none does, the request is denied on behalf of ``DEFAULT_DENY``.
"""

from typing import Any, Dict, Optional
import logging

from .catalog import RuleCatalog
from .context import EvaluationTrace
from .types import DEFAULT_DENY, AuthorizationResult, Decision, Verdict


logger = logging.getLogger(__name__)


class RuleEvaluator:
    """
    Short-circuiting evaluator over a rule catalog.
    """

    def __init__(self, rules: RuleCatalog):
        self.rules = rules

    def decide(
        self,
        subject: Any,
        obj: Any,
        action: Any,
        context: Dict[str, Any],
        trace: Optional[EvaluationTrace] = None
    ) -> Decision:
        """Return the first decision, or the default deny."""
        for rule in self.rules.rules_for(action):
            if trace is not None:
                trace.add_rule_evaluated(rule.id)

            outcome = rule.evaluate(subject, obj, action, context)
            if isinstance(outcome, Decision):
                logger.debug(f"Rule {rule.id!r} decided {outcome.verdict.value} for action {action!r}")
                return outcome

        logger.debug(f"No rule decided action {action!r}, denying by default")
        return Decision(Verdict.DENY, DEFAULT_DENY)

    def evaluate(
        self,
        subject: Any,
        obj: Any,
        action: Any,
        context: Dict[str, Any],
        trace: Optional[EvaluationTrace] = None
    ) -> AuthorizationResult:
        """
        Evaluate the rules and wrap the decision into a justification.

        Returns:
            AuthorizationResult: Verdict, deciding rule id and parameters
            prefixed with subject, object, action and context
        """
        decision = self.decide(subject, obj, action, context, trace)
        params = (
            ("subject", subject),
            ("object", obj),
            ("action", action),
            ("context", context),
        ) + decision.params

        return AuthorizationResult(
            verdict=decision.verdict,
            rule_id=decision.rule_id,
            params=params
        )
