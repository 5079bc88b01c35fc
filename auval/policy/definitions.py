"""
Rule and fetcher definitions.

Both are immutable values created when a policy is defined: four matchers
(subject, object, action, context), a guard over the merged bindings, and a
body. A definition applies to a request only if all four matchers accept and
the guard holds.
"""

from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional, Union

from ..errors import PolicyDefinitionError
from .matchers import ANY, Bindings, Matcher, as_matcher, merge_names
from .results import RuleOutcome, normalize_rule_result
from .types import ALL, DEFAULT_DENY, NEXT


Guard = Callable[[Bindings], Any]
Body = Callable[[Bindings], Any]
Actions = Union[str, FrozenSet[Any]]

_MATCHER_FIELDS = ("subject_matcher", "object_matcher", "action_matcher", "context_matcher")


def always(bindings: Bindings) -> bool:
    """Default guard."""
    return True


def normalize_actions(actions: Any, owner: Optional[str] = None) -> Actions:
    """
    Normalize a rule's ``actions`` to ``ALL`` or a frozenset of action ids.

    A single hashable value (including a string) is one action; lists, tuples,
    sets and frozensets are collections; one-shot iterators such as generators
    are rejected. A collection containing ``ALL`` is the wildcard.
    """
    if isinstance(actions, (list, tuple, set, frozenset)):
        if not actions:
            raise PolicyDefinitionError("Rule must apply to at least one action", definition_id=owner)
        for action in actions:
            if not isinstance(action, Hashable):
                raise PolicyDefinitionError(f"Unhashable action {action!r}", definition_id=owner)
        normalized = frozenset(actions)
        return ALL if ALL in normalized else normalized
    if isinstance(actions, Iterator):
        raise PolicyDefinitionError(
            f"Actions must be a list, tuple or set, not a one-shot iterator {actions!r}", definition_id=owner
        )
    if actions is None or not isinstance(actions, Hashable):
        raise PolicyDefinitionError(f"Invalid actions {actions!r}", definition_id=owner)
    if actions == ALL:
        return ALL
    return frozenset([actions])


class _Applicable:
    """Matcher and guard handling shared by rules and fetchers."""

    def _validate(self, kind: str) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise PolicyDefinitionError(f"{kind} id must be a non-empty string, got {self.id!r}")
        if not callable(self.body):
            raise PolicyDefinitionError(f"{kind} body must be callable", definition_id=self.id)
        if not callable(self.guard):
            raise PolicyDefinitionError(f"{kind} guard must be callable", definition_id=self.id)

        for name in _MATCHER_FIELDS:
            object.__setattr__(self, name, as_matcher(getattr(self, name)))
        merge_names((getattr(self, name).binding_names() for name in _MATCHER_FIELDS), owner=self.id)

    @property
    def matchers(self):
        return tuple(getattr(self, name) for name in _MATCHER_FIELDS)

    def bind(self, subject: Any, obj: Any, action: Any, context: Dict[str, Any]) -> Optional[Bindings]:
        """
        Run all four matchers.

        Returns:
            Merged bindings if every matcher accepts, None otherwise
        """
        bound: Dict[str, Any] = {}
        for matcher, candidate in zip(self.matchers, (subject, obj, action, context)):
            extracted = matcher.match(candidate)
            if extracted is None:
                return None
            bound.update(extracted)
        return Bindings(bound)

    def applies(self, subject: Any, obj: Any, action: Any, context: Dict[str, Any]) -> Optional[Bindings]:
        """Bindings if all matchers accept and the guard holds, None otherwise."""
        bindings = self.bind(subject, obj, action, context)
        if bindings is None or not self.guard(bindings):
            return None
        return bindings


@dataclass(frozen=True)
class RuleDefinition(_Applicable):
    """
    A declarative decision unit.

    Attributes:
        id: Symbolic identifier reported when this rule decides
        actions: ``ALL``, a single action, or a collection of actions
        body: Called with the bindings; its result is normalized
        guard: Extra condition over the bindings
    """
    id: str
    actions: Any
    body: Body
    subject_matcher: Matcher = ANY
    object_matcher: Matcher = ANY
    action_matcher: Matcher = ANY
    context_matcher: Matcher = ANY
    guard: Guard = field(default=always)

    def __post_init__(self):
        self._validate("Rule")
        if self.id == DEFAULT_DENY:
            raise PolicyDefinitionError(f"Rule id {DEFAULT_DENY!r} is reserved", definition_id=self.id)
        object.__setattr__(self, "actions", normalize_actions(self.actions, owner=self.id))

    def handles(self, action: Any) -> bool:
        """Whether this rule is considered at all for ``action``."""
        if self.actions == ALL:
            return True
        try:
            return action in self.actions
        except TypeError:
            # unhashable action ids never equal a declared one
            return False

    def evaluate(self, subject: Any, obj: Any, action: Any, context: Dict[str, Any]) -> RuleOutcome:
        """Match, check the guard, run the body and normalize its result."""
        bindings = self.applies(subject, obj, action, context)
        if bindings is None:
            return NEXT
        return normalize_rule_result(self.body(bindings), self.id)


@dataclass(frozen=True)
class FetcherDefinition(_Applicable):
    """
    A declarative unit computing one context attribute.

    Attributes:
        id: Symbolic identifier
        attribute: Context key written on success
        body: Called with the bindings; returns a value, ``Value`` or ``Failure``
        guard: Extra condition over the bindings
    """
    id: str
    attribute: str
    body: Body
    subject_matcher: Matcher = ANY
    object_matcher: Matcher = ANY
    action_matcher: Matcher = ANY
    context_matcher: Matcher = ANY
    guard: Guard = field(default=always)

    def __post_init__(self):
        self._validate("Fetcher")
        if not isinstance(self.attribute, Hashable):
            raise PolicyDefinitionError(
                f"Fetcher attribute must be hashable, got {self.attribute!r}",
                definition_id=self.id
            )
