"""
Value types for policy evaluation.
Implements verdicts, rule-body markers, outcomes and the authorization result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Tuple


# Wildcard accepted in a rule's ``actions``.
ALL = "all"

# Reserved rule id credited when no rule decides.
DEFAULT_DENY = "default_deny"

Params = Tuple[Tuple[str, Any], ...]


class Verdict(Enum):
    """Authorization verdict."""
    ALLOW = "allow"
    DENY = "deny"


# Constants for convenience
Allow = Verdict.ALLOW
Deny = Verdict.DENY


class Next:
    """
    No decision.

    Returned by a rule body to fall through to the next rule, and used as the
    normalized outcome of a rule that did not decide.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEXT"

    def __reduce__(self):
        return (Next, ())


NEXT = Next()


class _Tagged:
    """Rule-body return value carrying zero, one or two payload elements."""

    __slots__ = ("payload",)

    def __init__(self, *payload: Any):
        if len(payload) > 2:
            raise TypeError(f"{type(self).__name__}() takes at most 2 arguments ({len(payload)} given)")
        self.payload = payload

    def __eq__(self, other: Any) -> bool:
        return type(other) is type(self) and other.payload == self.payload

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self.payload)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(p) for p in self.payload)})"


class Ok(_Tagged):
    """
    Allow.

    ``Ok()`` allows with no parameters, ``Ok(params)`` allows with parameters
    and ``Ok(reason, params)`` allows with parameters, ignoring ``reason``.
    """
    __slots__ = ()


class Err(_Tagged):
    """
    Deny.

    ``Err()`` denies with no parameters, ``Err(params)`` denies with
    parameters and ``Err(reason, params)`` denies with parameters, ignoring
    ``reason``. ``Err(DEFAULT_DENY, params)`` declines to decide.
    """
    __slots__ = ()


OK = Ok()
ERR = Err()


@dataclass(frozen=True)
class Decision:
    """Decisive rule outcome."""
    verdict: Verdict
    rule_id: str
    params: Params = ()

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOW


@dataclass(frozen=True)
class Value:
    """Successful fetch; ``value`` is stored in the context."""
    value: Any


@dataclass(frozen=True)
class Failure:
    """Failed fetch; aborts context building."""
    reason: Any = None


@dataclass(frozen=True)
class AuthorizationResult:
    """
    Justification returned by every successful authorize call.

    ``params`` always starts with the ``subject``, ``object``, ``action`` and
    ``context`` entries, followed by the parameters supplied by the deciding
    rule. The result unpacks like a triple::

        verdict, rule_id, params = policy.authorize(user, doc, "read")

    Results hold the context dict and are therefore not hashable.
    """
    verdict: Verdict
    rule_id: str
    params: Params = field(default=())

    __hash__ = None

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOW

    @property
    def subject(self) -> Any:
        return self.param("subject")

    @property
    def object(self) -> Any:
        return self.param("object")

    @property
    def action(self) -> Any:
        return self.param("action")

    @property
    def context(self) -> Dict[str, Any]:
        return self.param("context")

    @property
    def rule_params(self) -> Params:
        """Parameters supplied by the deciding rule."""
        return self.params[4:]

    def param(self, key: str, default: Any = None) -> Any:
        """Return the first parameter named ``key``."""
        for name, value in self.params:
            if name == key:
                return value
        return default

    def __iter__(self) -> Iterator[Any]:
        return iter((self.verdict, self.rule_id, self.params))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'verdict': self.verdict.value,
            'rule_id': self.rule_id,
            'parameters': [[name, value] for name, value in self.params]
        }


def as_params(value: Any) -> Params:
    """
    Coerce rule-supplied parameters to an ordered tuple of pairs.

    Accepts a mapping or an iterable of ``(key, value)`` pairs.

    Raises:
        TypeError: If ``value`` has any other shape
    """
    if isinstance(value, Mapping):
        return tuple(value.items())
    if isinstance(value, (str, bytes)):
        raise TypeError("parameters must be a mapping or (key, value) pairs")
    try:
        pairs = tuple(value)
    except TypeError:
        raise TypeError("parameters must be a mapping or (key, value) pairs") from None
    for pair in pairs:
        if not isinstance(pair, (tuple, list)) or len(pair) != 2:
            raise TypeError(f"parameter entries must be (key, value) pairs, got {pair!r}")
    return tuple((key, item) for key, item in pairs)
