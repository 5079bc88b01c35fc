"""
Decorator-based authoring of policies.

Example::

    blog = PolicyBuilder("blog")

    @blog.fetch("groups for user", "groups", subject=fields(id=bind("user_id")))
    def groups_for_user(b):
        return USER_DB.get(b.user_id, [])

    @blog.rule("admin_group_can_do_anything", ALL,
               context=fields(groups=bind("groups")),
               when=lambda b: "admin" in b.groups)
    def admin_group(b):
        return OK

    policy = blog.build()
"""

from typing import Any, Callable, List, Optional
import logging

from .definitions import FetcherDefinition, Guard, RuleDefinition, always
from .matchers import ANY
from .policy import Policy


logger = logging.getLogger(__name__)


class PolicyBuilder:
    """
    Collects rule and fetcher definitions in declaration order.
    """

    def __init__(self, name: str = "policy"):
        self.name = name
        self._rules: List[RuleDefinition] = []
        self._fetchers: List[FetcherDefinition] = []

    def add_rule(self, rule: RuleDefinition) -> RuleDefinition:
        """Append a rule definition."""
        self._rules.append(rule)
        return rule

    def add_fetcher(self, fetcher: FetcherDefinition) -> FetcherDefinition:
        """Append a fetcher definition."""
        self._fetchers.append(fetcher)
        return fetcher

    def rule(
        self,
        rule_id: str,
        actions: Any,
        subject: Any = ANY,
        obj: Any = ANY,
        *,
        action: Any = ANY,
        context: Any = ANY,
        when: Optional[Guard] = None
    ) -> Callable[[Callable], Callable]:
        """
        Register the decorated function as the body of a rule.

        Args:
            rule_id: Identifier reported when the rule decides
            actions: ``ALL``, one action, or a collection of actions
            subject: Pattern for the subject
            obj: Pattern for the object
            action: Pattern for the action
            context: Pattern for the context
            when: Guard over the bindings
        """
        def decorator(func: Callable) -> Callable:
            self.add_rule(RuleDefinition(
                id=rule_id,
                actions=actions,
                body=func,
                subject_matcher=subject,
                object_matcher=obj,
                action_matcher=action,
                context_matcher=context,
                guard=when or always
            ))
            return func

        return decorator

    def fetch(
        self,
        fetcher_id: str,
        attribute: str,
        *,
        subject: Any = ANY,
        obj: Any = ANY,
        action: Any = ANY,
        context: Any = ANY,
        when: Optional[Guard] = None
    ) -> Callable[[Callable], Callable]:
        """Register the decorated function as the body of a fetcher for ``attribute``."""
        def decorator(func: Callable) -> Callable:
            self.add_fetcher(FetcherDefinition(
                id=fetcher_id,
                attribute=attribute,
                body=func,
                subject_matcher=subject,
                object_matcher=obj,
                action_matcher=action,
                context_matcher=context,
                guard=when or always
            ))
            return func

        return decorator

    def build(self, **policy_kwargs: Any) -> Policy:
        """Freeze the collected definitions into a Policy."""
        policy_kwargs.setdefault("name", self.name)
        logger.debug(f"Building policy {policy_kwargs['name']!r}")
        return Policy(rules=self._rules, fetchers=self._fetchers, **policy_kwargs)
