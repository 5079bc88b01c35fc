"""
Tests for decorator-based policy authoring.
"""

import pytest

from auval import ALL, DEFAULT_DENY, ERR, OK, PolicyBuilder, PolicyDefinitionError, bind, fields
from auval.audit import MemoryAuditLogger


@pytest.fixture
def blog():
    builder = PolicyBuilder("blog")
    db = {"ann": ["admin"], "bob": ["blogger"]}

    @builder.fetch("groups for user", "groups", subject=fields(id=bind("user_id")))
    def groups_for_user(b):
        return db.get(b.user_id, [])

    @builder.rule("admin_group_can_do_anything", ALL,
                  context=fields(groups=bind("groups")),
                  when=lambda b: "admin" in b.groups)
    def admin_group(b):
        return OK

    @builder.rule("nobody_deletes", "delete")
    def nobody_deletes(b):
        return ERR

    @builder.rule("bloggers_can_post", ["post", "read"],
                  context=fields(groups=bind("groups")),
                  when=lambda b: "blogger" in b.groups)
    def bloggers(b):
        return OK

    return builder


class TestPolicyBuilder:
    """Test the decorator API."""

    def test_decorators_return_function(self):
        """Decorated functions remain callable as-is."""
        builder = PolicyBuilder()

        @builder.rule("r", ALL)
        def body(b):
            return OK

        assert body(None) is OK

    def test_declaration_order(self, blog):
        """Rules keep the order they were declared in."""
        policy = blog.build()
        assert policy.name == "blog"
        assert policy.rules.ids() == ("admin_group_can_do_anything", "nobody_deletes", "bloggers_can_post")
        assert policy.fetchers.ids() == ("groups for user",)

    def test_decisions(self, blog):
        """Built policies evaluate like hand-assembled ones."""
        policy = blog.build()
        assert policy.authorize({"id": "ann"}, "post-1", "delete").rule_id == "admin_group_can_do_anything"
        assert policy.authorize({"id": "bob"}, "post-1", "delete").rule_id == "nobody_deletes"
        assert policy.authorize({"id": "bob"}, "post-1", "post").allowed
        assert policy.authorize({"id": "eve"}, "post-1", "read").rule_id == DEFAULT_DENY

    def test_build_kwargs(self, blog):
        """Keyword arguments reach the Policy constructor."""
        audit = MemoryAuditLogger()
        policy = blog.build(name="blog-v2", audit_logger=audit)
        policy.authorize({"id": "bob"}, "post-1", "read")
        assert policy.name == "blog-v2"
        assert len(audit.get_events(policy="blog-v2")) == 1

    def test_definition_errors_surface_at_decoration(self):
        """Malformed rules fail when declared."""
        builder = PolicyBuilder()
        with pytest.raises(PolicyDefinitionError):
            @builder.rule("r", [])
            def body(b):
                return OK

    def test_duplicate_ids_surface_at_build(self):
        """Duplicate ids fail when the policy is built."""
        builder = PolicyBuilder()
        builder.rule("r", ALL)(lambda b: OK)
        builder.rule("r", "read")(lambda b: OK)
        with pytest.raises(PolicyDefinitionError):
            builder.build()
