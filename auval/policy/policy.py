"""
Policy facade.

A Policy composes a fetcher catalog and a rule catalog into a single
``authorize`` entry point. Both catalogs are fixed when the policy is
constructed and shared read-only by every call.
"""

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Tuple, Union
import logging
import time

from ..errors import FetchError
from .catalog import FetcherCatalog, RuleCatalog
from .context import ContextBuilder, EvaluationTrace
from .definitions import FetcherDefinition, RuleDefinition
from .evaluator import RuleEvaluator
from .types import AuthorizationResult

if TYPE_CHECKING:
    from ..audit.logger import AuditLogger
    from ..config import PolicyConfig
    from ..metrics.collector import MetricsCollector


logger = logging.getLogger(__name__)


class Policy:
    """
    An authorization policy.

    Example::

        policy = Policy(rules=[
            RuleDefinition("admins", ALL, body=lambda b: OK,
                           subject_matcher=fields(role="admin")),
        ])
        verdict, rule_id, params = policy.authorize(user, document, "write")
    """

    def __init__(
        self,
        rules: Union[RuleCatalog, Iterable[RuleDefinition]] = (),
        fetchers: Union[FetcherCatalog, Iterable[FetcherDefinition]] = (),
        name: str = "policy",
        audit_logger: Optional["AuditLogger"] = None,
        metrics: Optional["MetricsCollector"] = None
    ):
        self.name = name
        self.rules = rules if isinstance(rules, RuleCatalog) else RuleCatalog(rules)
        self.fetchers = fetchers if isinstance(fetchers, FetcherCatalog) else FetcherCatalog(fetchers)
        self.audit_logger = audit_logger
        self.metrics = metrics

        self._context_builder = ContextBuilder(self.fetchers)
        self._evaluator = RuleEvaluator(self.rules)

        logger.info(f"Policy {name!r} built with {len(self.rules)} rule(s) and {len(self.fetchers)} fetcher(s)")

    @classmethod
    def from_config(
        cls,
        config: "PolicyConfig",
        rules: Union[RuleCatalog, Iterable[RuleDefinition]] = (),
        fetchers: Union[FetcherCatalog, Iterable[FetcherDefinition]] = ()
    ) -> "Policy":
        """
        Create a policy whose logging, audit and metrics follow a configuration.
        """
        from ..audit.logger import create_audit_logger
        from ..config import configure_logging
        from ..metrics.collector import MetricConfig, MetricsCollector

        config.validate()
        configure_logging(config.log_level)

        audit_logger = None
        if config.audit_logger != "none":
            audit_logger = create_audit_logger(
                config.audit_logger,
                max_entries=config.audit_max_entries,
                file_path=config.audit_file_path
            )

        metrics = None
        if config.metrics_enabled:
            metrics = MetricsCollector(MetricConfig(namespace=config.metrics_namespace))

        return cls(rules, fetchers, name=config.name, audit_logger=audit_logger, metrics=metrics)

    def authorize(
        self,
        subject: Any,
        obj: Any,
        action: Any,
        context: Optional[Mapping[str, Any]] = None
    ) -> AuthorizationResult:
        """
        Decide whether ``subject`` may perform ``action`` on ``obj``.

        Args:
            subject: The entity requesting access
            obj: The target of the action
            action: The action identifier
            context: Initial ambient attributes; fetchers skip those present

        Returns:
            AuthorizationResult: Verdict, deciding rule id and parameters

        Raises:
            FetchError: If building the context failed; no rule was evaluated
        """
        result, _ = self.explain(subject, obj, action, context)
        return result

    def explain(
        self,
        subject: Any,
        obj: Any,
        action: Any,
        context: Optional[Mapping[str, Any]] = None
    ) -> Tuple[AuthorizationResult, EvaluationTrace]:
        """Like ``authorize``, also returning the evaluation trace."""
        trace = EvaluationTrace()
        start_time = time.perf_counter()

        try:
            built = self._context_builder.build(subject, obj, action, context, trace)
        except FetchError as e:
            trace.evaluation_time = time.perf_counter() - start_time
            logger.warning(f"Policy {self.name!r}: context building failed for action {action!r}: {e}")
            self._record_failure(e, action, trace)
            raise

        result = self._evaluator.evaluate(subject, obj, action, built, trace)
        trace.evaluation_time = time.perf_counter() - start_time

        logger.info(
            f"Policy {self.name!r}: {result.verdict.value} {action!r} "
            f"by {result.rule_id!r} in {trace.evaluation_time * 1000:.3f}ms"
        )
        self._record_result(result, trace)
        return result, trace

    def _record_result(self, result: AuthorizationResult, trace: EvaluationTrace) -> None:
        if self.metrics is not None:
            self.metrics.record_decision(result, trace)
        if self.audit_logger is not None:
            self.audit_logger.log_result(self.name, result, trace)

    def _record_failure(self, error: FetchError, action: Any, trace: EvaluationTrace) -> None:
        if self.metrics is not None:
            self.metrics.record_fetch_failure(error, trace)
        if self.audit_logger is not None:
            self.audit_logger.log_failure(self.name, error, action, trace)

    def __repr__(self) -> str:
        return f"Policy({self.name!r}, rules={list(self.rules.ids())!r}, fetchers={list(self.fetchers.ids())!r})"
