"""
Normalization of rule and fetcher return values.

Rule bodies may answer in several shapes; they are mapped onto a single
outcome, either ``NEXT`` or a ``Decision``, by this precedence table
(first match wins):

==========================  ==============================
returned value              outcome
==========================  ==============================
``NEXT``                    ``NEXT``
``True``                    allow, no parameters
``False``                   ``NEXT``
``Ok()`` / ``OK``           allow, no parameters
``Ok(params)``              allow with ``params``
``Ok(_, params)``           allow with ``params``
``Err()`` / ``ERR``         deny, no parameters
``Err(params)``             deny with ``params``
``Err(DEFAULT_DENY, _)``    ``NEXT``
``Err(_, params)``          deny with ``params``
==========================  ==============================

Fetcher bodies return either a plain value, an explicit ``Value`` or a
``Failure``.
"""

from typing import Any, Union

from ..errors import InvalidResultError
from .types import (
    DEFAULT_DENY, NEXT, Decision, Err, Failure, Next, Ok, Value, Verdict, as_params
)


RuleOutcome = Union[Next, Decision]
FetchOutcome = Union[Value, Failure]


def normalize_rule_result(value: Any, rule_id: str) -> RuleOutcome:
    """
    Map a rule body's return value to ``NEXT`` or a ``Decision``.

    Args:
        value: What the rule body returned
        rule_id: Id credited with the decision

    Returns:
        RuleOutcome: ``NEXT`` or a ``Decision`` attributed to ``rule_id``

    Raises:
        InvalidResultError: If ``value`` is not one of the supported shapes
    """
    if value is NEXT:
        return NEXT
    if value is True:
        return Decision(Verdict.ALLOW, rule_id)
    if value is False:
        return NEXT
    if isinstance(value, Ok):
        return _decide(Verdict.ALLOW, value, rule_id)
    if isinstance(value, Err):
        if len(value.payload) == 2 and value.payload[0] == DEFAULT_DENY:
            return NEXT
        return _decide(Verdict.DENY, value, rule_id)

    raise InvalidResultError(
        f"Rule {rule_id!r} returned an unsupported value",
        definition_id=rule_id,
        value=value
    )


def _decide(verdict: Verdict, value: Union[Ok, Err], rule_id: str) -> Decision:
    if not value.payload:
        return Decision(verdict, rule_id)
    try:
        params = as_params(value.payload[-1])
    except TypeError as e:
        raise InvalidResultError(
            f"Rule {rule_id!r} returned malformed parameters: {e}",
            definition_id=rule_id,
            value=value
        ) from e
    return Decision(verdict, rule_id, params)


def normalize_fetch_result(value: Any, fetcher_id: str) -> FetchOutcome:
    """
    Map a fetcher body's return value to ``Value`` or ``Failure``.

    A plain return value is stored as-is. Rule-body markers are rejected so
    that a wrapper never ends up stored in the context.

    Raises:
        InvalidResultError: If ``value`` is ``NEXT``, ``Ok`` or ``Err``
    """
    if isinstance(value, (Value, Failure)):
        return value
    if isinstance(value, (Ok, Err, Next)):
        raise InvalidResultError(
            f"Fetcher {fetcher_id!r} returned a rule result; use Value() or Failure()",
            definition_id=fetcher_id,
            value=value
        )
    return Value(value)
