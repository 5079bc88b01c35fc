"""
Structural matchers for rules and fetchers.

A matcher is tested against one of subject, object, action or context. It
either rejects the candidate (``match`` returns ``None``) or accepts it and
returns the variables it extracted from the candidate's shape. Those bindings
are handed to the guard and the body of the owning rule or fetcher.

Example::

    fields(role="admin")                      # subject.role == "admin"
    instance_of(User, id=bind("user_id"))     # isinstance check + extraction
    fields(groups=bind("groups"))             # context["groups"] -> groups
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

from ..errors import PolicyDefinitionError


_MISSING = object()


class Bindings(Mapping):
    """
    Read-only variables bound by matchers.

    Values are available both by key (``b["role"]``) and as attributes
    (``b.role``). Names of Mapping methods (``items``, ``get``, ...) cannot
    be bound.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        object.__setattr__(self, "_values", dict(values or {}))

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_values":
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"No binding named {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Bindings are read-only")

    def __repr__(self) -> str:
        return f"Bindings({self._values!r})"


def merge_names(groups: Iterable[FrozenSet[str]], owner: Optional[str] = None) -> FrozenSet[str]:
    """
    Union binding-name sets, failing on any name bound twice.

    Raises:
        PolicyDefinitionError: If two groups bind the same name
    """
    seen: set = set()
    for names in groups:
        clash = seen & names
        if clash:
            raise PolicyDefinitionError(
                f"Binding name(s) {sorted(clash)} bound more than once",
                definition_id=owner,
                details={'bindings': sorted(clash)}
            )
        seen |= names
    return frozenset(seen)


class Matcher(ABC):
    """Predicate plus extractor over a single candidate value."""

    @abstractmethod
    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        """
        Test a candidate.

        Args:
            candidate: The value to test

        Returns:
            Bound variables when the candidate is accepted, None otherwise
        """
        pass

    def binding_names(self) -> FrozenSet[str]:
        """Names this matcher may bind on acceptance."""
        return frozenset()

    def __and__(self, other: Any) -> "AllOf":
        return AllOf(self, other)


class Anything(Matcher):
    """Accepts every candidate without binding anything."""

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        return {}

    def __repr__(self) -> str:
        return "ANY"


ANY = Anything()


class Equals(Matcher):
    """Accepts candidates equal to a literal value."""

    def __init__(self, value: Any):
        self.value = value

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        return {} if candidate == self.value else None

    def __repr__(self) -> str:
        return f"Equals({self.value!r})"


class OneOf(Matcher):
    """Accepts candidates contained in a fixed collection of values."""

    def __init__(self, *values: Any):
        self.values = tuple(values)

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        return {} if candidate in self.values else None

    def __repr__(self) -> str:
        return f"OneOf{self.values!r}"


class Where(Matcher):
    """Accepts candidates for which a predicate is truthy."""

    def __init__(self, predicate: Callable[[Any], Any]):
        if not callable(predicate):
            raise PolicyDefinitionError("Where() requires a callable predicate")
        self.predicate = predicate

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        return {} if self.predicate(candidate) else None

    def __repr__(self) -> str:
        return f"Where({getattr(self.predicate, '__name__', self.predicate)!r})"


class Bind(Matcher):
    """Binds the whole candidate under a name once an inner pattern accepts it."""

    def __init__(self, name: str, pattern: Any = ANY):
        if not isinstance(name, str) or not name.isidentifier():
            raise PolicyDefinitionError(f"Invalid binding name: {name!r}")
        if hasattr(Bindings, name):
            # b.<name> would resolve to the Mapping method instead of the value
            raise PolicyDefinitionError(f"Binding name {name!r} is reserved by Bindings")
        self.name = name
        self.pattern = as_matcher(pattern)
        merge_names([self.pattern.binding_names(), frozenset([name])])

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        bound = self.pattern.match(candidate)
        if bound is None:
            return None
        bound = dict(bound)
        bound[self.name] = candidate
        return bound

    def binding_names(self) -> FrozenSet[str]:
        return self.pattern.binding_names() | {self.name}

    def __repr__(self) -> str:
        return f"Bind({self.name!r}, {self.pattern!r})"


class Fields(Matcher):
    """
    Structural matcher over mappings and objects.

    Each named field must be present on the candidate (as a mapping key, or
    as an attribute for any other object) and its value must satisfy the
    associated pattern. An optional type restricts candidates by isinstance.
    """

    def __init__(self, patterns: Optional[Dict[str, Any]] = None, type_: Optional[type] = None):
        self.type_ = type_
        self.patterns: Tuple[Tuple[str, Matcher], ...] = tuple(
            (name, as_matcher(pattern)) for name, pattern in (patterns or {}).items()
        )
        self._names = merge_names(m.binding_names() for _, m in self.patterns)

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        if self.type_ is not None and not isinstance(candidate, self.type_):
            return None

        bound: Dict[str, Any] = {}
        for name, matcher in self.patterns:
            value = _lookup(candidate, name)
            if value is _MISSING:
                return None
            extracted = matcher.match(value)
            if extracted is None:
                return None
            bound.update(extracted)
        return bound

    def binding_names(self) -> FrozenSet[str]:
        return self._names

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}={matcher!r}" for name, matcher in self.patterns)
        if self.type_ is not None:
            return f"{self.type_.__name__}({inner})"
        return f"Fields({inner})"


class AllOf(Matcher):
    """Accepts when every sub-pattern accepts; bindings are merged."""

    def __init__(self, *patterns: Any):
        self.matchers = tuple(as_matcher(p) for p in patterns)
        self._names = merge_names(m.binding_names() for m in self.matchers)

    def match(self, candidate: Any) -> Optional[Dict[str, Any]]:
        bound: Dict[str, Any] = {}
        for matcher in self.matchers:
            extracted = matcher.match(candidate)
            if extracted is None:
                return None
            bound.update(extracted)
        return bound

    def binding_names(self) -> FrozenSet[str]:
        return self._names

    def __repr__(self) -> str:
        return f"AllOf{self.matchers!r}"


def _lookup(candidate: Any, name: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(name, _MISSING)
    return getattr(candidate, name, _MISSING)


def as_matcher(pattern: Any) -> Matcher:
    """Return ``pattern`` if it already is a Matcher, else an equality matcher for it."""
    if isinstance(pattern, Matcher):
        return pattern
    return Equals(pattern)


# DSL helpers

def anything() -> Matcher:
    return ANY


def eq(value: Any) -> Matcher:
    return Equals(value)


def one_of(*values: Any) -> Matcher:
    return OneOf(*values)


def where(predicate: Callable[[Any], Any]) -> Matcher:
    return Where(predicate)


def bind(name: str, pattern: Any = ANY) -> Matcher:
    return Bind(name, pattern)


def fields(**patterns: Any) -> Matcher:
    return Fields(patterns)


def instance_of(type_: type, **patterns: Any) -> Matcher:
    return Fields(patterns, type_=type_)


def all_of(*patterns: Any) -> Matcher:
    return AllOf(*patterns)
