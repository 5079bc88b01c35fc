"""
Basic auval usage example.

This example demonstrates the fundamental auval operations:
- Defining rules with matchers and guards
- Looking up attributes with a fetcher
- Reading the justification of a decision
- Explaining an evaluation and configuring a policy
"""

from dataclasses import dataclass

from auval import (
    ALL, ERR, OK, FetchError, FetcherDefinition, Policy, PolicyConfig, RuleDefinition,
    bind, fields, instance_of
)


@dataclass(frozen=True)
class Employee:
    name: str
    roles: tuple


@dataclass(frozen=True)
class Document:
    kind: str
    owner: str


DEPARTMENTS = {"ada": "accounting", "bob": "sales"}


def lookup_department(b):
    """Fetcher body: the department of the requesting employee."""
    return DEPARTMENTS[b.name]


def build_policy(**policy_kwargs):
    roles = instance_of(Employee, roles=bind("roles"))

    return Policy(
        rules=[
            RuleDefinition(
                "assistants_cannot_write_financials", "write", body=lambda b: ERR,
                subject_matcher=roles, object_matcher=fields(kind="financials"),
                guard=lambda b: "assistant" in b.roles
            ),
            RuleDefinition(
                "accounting_can_access_financials", ALL, body=lambda b: OK,
                object_matcher=fields(kind="financials"),
                context_matcher=fields(department=bind("department")),
                guard=lambda b: b.department == "accounting"
            ),
            RuleDefinition(
                "owners_can_edit", ["read", "write"], body=lambda b: OK,
                subject_matcher=instance_of(Employee, name=bind("name")),
                object_matcher=instance_of(Document, owner=bind("owner")),
                guard=lambda b: b.name == b.owner
            ),
        ],
        fetchers=[
            FetcherDefinition(
                "department of employee", "department", body=lookup_department,
                subject_matcher=instance_of(Employee, name=bind("name"))
            ),
        ],
        **policy_kwargs
    )


def basic_example():
    """Demonstrate basic auval usage"""
    print("Basic auval Example")
    print("=" * 30)

    # 1. Build a policy
    policy = build_policy(name="documents")
    print(f"✓ Created {policy!r}")

    ada = Employee("ada", ("accounting", "assistant"))
    bob = Employee("bob", ("sales",))
    ledger = Document("financials", owner="carol")
    pitch = Document("slides", owner="bob")

    # 2. Authorize requests
    for subject, obj, action in [
        (ada, ledger, "read"),
        (ada, ledger, "write"),
        (bob, ledger, "read"),
        (bob, pitch, "write"),
    ]:
        verdict, rule_id, _ = policy.authorize(subject, obj, action)
        print(f"✓ {subject.name} {action} {obj.kind}: {verdict.value} ({rule_id})")

    # 3. Inspect the justification
    result = policy.authorize(ada, ledger, "read")
    print(f"✓ Context after fetching: {result.context}")

    # 4. Explain an evaluation
    result, trace = policy.explain(bob, pitch, "read")
    print(f"✓ Rules tried: {trace.rules_evaluated}")
    print(f"✓ Fetchers run: {trace.fetchers_invoked}")

    # 5. Fetch failures abort the call
    try:
        policy.authorize(Employee("eve", ()), pitch, "read")
    except FetchError as e:
        print(f"✓ Lookup failed as expected: {e}")


def configured_example():
    """Demonstrate configuration-driven auditing and metrics"""
    print("\nConfigured auval Example")
    print("=" * 30)

    config = PolicyConfig(
        name="documents",
        log_level="WARNING",
        audit_logger="memory",
        metrics_enabled=True,
    )
    template = build_policy()
    policy = Policy.from_config(config, rules=template.rules, fetchers=template.fetchers)

    policy.authorize(Employee("ada", ("accounting",)), Document("financials", owner="carol"), "read")
    policy.authorize(Employee("bob", ("sales",)), Document("financials", owner="carol"), "read")

    for event in policy.audit_logger.get_events():
        print(f"✓ Audit: {event.details['verdict']} by {event.details['rule_id']}")

    print(policy.metrics.export().decode("utf-8").splitlines()[0])


if __name__ == "__main__":
    basic_example()
    configured_example()
