"""
Authorization context building.

The context is a plain dict owned by a single authorize call. Fetchers fill in
the attributes it lacks, in declaration order, before any rule runs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..errors import FetchError
from .catalog import FetcherCatalog
from .results import normalize_fetch_result
from .types import Failure


logger = logging.getLogger(__name__)


@dataclass
class EvaluationTrace:
    """
    Bookkeeping for one authorize call.
    """
    fetchers_invoked: List[str] = field(default_factory=list)
    attributes_supplied: List[str] = field(default_factory=list)
    rules_evaluated: List[str] = field(default_factory=list)
    evaluation_time: Optional[float] = None

    def add_fetcher_invoked(self, fetcher_id: str) -> None:
        """Record that a fetcher body ran."""
        self.fetchers_invoked.append(fetcher_id)

    def add_attribute_supplied(self, attribute: str) -> None:
        """Record that a fetcher was skipped because the caller supplied its attribute."""
        if attribute not in self.attributes_supplied:
            self.attributes_supplied.append(attribute)

    def add_rule_evaluated(self, rule_id: str) -> None:
        """Record that a rule's matchers were tried."""
        self.rules_evaluated.append(rule_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'fetchers_invoked': self.fetchers_invoked,
            'attributes_supplied': self.attributes_supplied,
            'rules_evaluated': self.rules_evaluated,
            'evaluation_time': self.evaluation_time
        }


class ContextBuilder:
    """
    Runs a fetcher catalog over an initial context.
    """

    def __init__(self, fetchers: FetcherCatalog):
        self.fetchers = fetchers

    def build(
        self,
        subject: Any,
        obj: Any,
        action: Any,
        context: Optional[Mapping[str, Any]] = None,
        trace: Optional[EvaluationTrace] = None
    ) -> Dict[str, Any]:
        """
        Build the final context for a request.

        Args:
            subject: The entity requesting access
            obj: The target of the action
            action: The action being authorized
            context: Caller-supplied attributes; copied, never mutated
            trace: Optional trace to record into

        Returns:
            Dict[str, Any]: The initial attributes plus everything fetched

        Raises:
            FetchError: If a fetcher fails; context building stops there
        """
        built: Dict[str, Any] = dict(context or {})

        for fetcher in self.fetchers:
            if fetcher.attribute in built:
                logger.debug(f"Skipping fetcher {fetcher.id!r}: {fetcher.attribute!r} already present")
                if trace is not None and context and fetcher.attribute in context:
                    trace.add_attribute_supplied(fetcher.attribute)
                continue

            bindings = fetcher.applies(subject, obj, action, built)
            if bindings is None:
                continue

            if trace is not None:
                trace.add_fetcher_invoked(fetcher.id)

            try:
                returned = fetcher.body(bindings)
            except FetchError:
                raise
            except Exception as e:
                raise FetchError(
                    f"Fetcher {fetcher.id!r} raised while computing {fetcher.attribute!r}: {e}",
                    fetcher_id=fetcher.id,
                    attribute=fetcher.attribute,
                    reason=e,
                    cause=e
                ) from e

            outcome = normalize_fetch_result(returned, fetcher.id)
            if isinstance(outcome, Failure):
                raise FetchError(
                    f"Fetcher {fetcher.id!r} failed to compute {fetcher.attribute!r}",
                    fetcher_id=fetcher.id,
                    attribute=fetcher.attribute,
                    reason=outcome.reason
                )

            built[fetcher.attribute] = outcome.value
            logger.debug(f"Fetcher {fetcher.id!r} set {fetcher.attribute!r}")

        return built
