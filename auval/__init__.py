"""
auval Python Package

Justified authorization: ordered, declarative rules and lazy context fetchers
producing auditable Allow/Deny decisions.
"""

__version__ = "0.1.0"

from .policy import (
    ALL,
    DEFAULT_DENY,
    Verdict,
    NEXT,
    Ok,
    Err,
    OK,
    ERR,
    Value,
    Failure,
    AuthorizationResult,
    RuleDefinition,
    FetcherDefinition,
    Policy,
    PolicyBuilder,
    anything,
    eq,
    one_of,
    where,
    bind,
    fields,
    instance_of,
    all_of,
)
from .config import PolicyConfig
from .errors import (
    AuvalError,
    PolicyDefinitionError,
    FetchError,
    InvalidResultError,
    ConfigurationError,
)

__all__ = [
    "ALL",
    "DEFAULT_DENY",
    "Verdict",
    "NEXT",
    "Ok",
    "Err",
    "OK",
    "ERR",
    "Value",
    "Failure",
    "AuthorizationResult",
    "RuleDefinition",
    "FetcherDefinition",
    "Policy",
    "PolicyBuilder",
    "anything",
    "eq",
    "one_of",
    "where",
    "bind",
    "fields",
    "instance_of",
    "all_of",
    "PolicyConfig",
    "AuvalError",
    "PolicyDefinitionError",
    "FetchError",
    "InvalidResultError",
    "ConfigurationError",
]
