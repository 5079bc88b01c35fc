"""
Package policy implements rule and fetcher evaluation with justified decisions.
"""

from .types import (
    ALL,
    DEFAULT_DENY,
    Verdict,
    Allow,
    Deny,
    Next,
    NEXT,
    Ok,
    Err,
    OK,
    ERR,
    Decision,
    Value,
    Failure,
    AuthorizationResult
)

from .matchers import (
    Matcher,
    Bindings,
    Anything,
    ANY,
    Equals,
    OneOf,
    Where,
    Bind,
    Fields,
    AllOf,
    anything,
    eq,
    one_of,
    where,
    bind,
    fields,
    instance_of,
    all_of
)

from .results import normalize_rule_result, normalize_fetch_result
from .definitions import RuleDefinition, FetcherDefinition
from .catalog import RuleCatalog, FetcherCatalog
from .context import ContextBuilder, EvaluationTrace
from .evaluator import RuleEvaluator
from .policy import Policy
from .builder import PolicyBuilder

__all__ = [
    # Types
    'ALL',
    'DEFAULT_DENY',
    'Verdict',
    'Allow',
    'Deny',
    'Next',
    'NEXT',
    'Ok',
    'Err',
    'OK',
    'ERR',
    'Decision',
    'Value',
    'Failure',
    'AuthorizationResult',

    # Matchers
    'Matcher',
    'Bindings',
    'Anything',
    'ANY',
    'Equals',
    'OneOf',
    'Where',
    'Bind',
    'Fields',
    'AllOf',
    'anything',
    'eq',
    'one_of',
    'where',
    'bind',
    'fields',
    'instance_of',
    'all_of',

    # Evaluation
    'normalize_rule_result',
    'normalize_fetch_result',
    'RuleDefinition',
    'FetcherDefinition',
    'RuleCatalog',
    'FetcherCatalog',
    'ContextBuilder',
    'EvaluationTrace',
    'RuleEvaluator',
    'Policy',
    'PolicyBuilder'
]
