"""
auval Demo Application

Walks through a small blog policy:
- Role rules with action scoping
- A fetcher looking up the subject's groups
- Justifications and the audit trail
- A fetch failure aborting a call
"""

import sys
from dataclasses import dataclass

from auval import (
    ALL, OK, Err, Failure, FetchError, PolicyBuilder, PolicyConfig, bind, fields, instance_of
)
from auval.audit import MemoryAuditLogger
from auval.config import configure_logging


USER_DB = {
    "the_admin": ["admin"],
    "the_blogger": ["blogger", "visitor"],
    "the_visitor": ["visitor"],
}


@dataclass(frozen=True)
class User:
    id: str


@dataclass(frozen=True)
class Post:
    author: str
    locked: bool = False


def build_blog_policy(**policy_kwargs):
    """Build the demo policy."""
    blog = PolicyBuilder("blog")

    @blog.fetch("groups for user", "groups", subject=fields(id=bind("user_id")))
    def groups_for_user(b):
        if b.user_id not in USER_DB:
            return Failure(f"unknown user {b.user_id}")
        return USER_DB[b.user_id]

    @blog.rule("admin_group_can_do_anything", ALL,
               context=fields(groups=bind("groups")),
               when=lambda b: "admin" in b.groups)
    def admin_group(b):
        return OK

    @blog.rule("locked_posts_are_read_only", ["post", "delete"], obj=fields(locked=True))
    def locked_posts(b):
        return Err({"reason": "post is locked"})

    @blog.rule("authors_can_delete_own_posts", "delete",
               instance_of(User, id=bind("user_id")), instance_of(Post, author=bind("author")),
               when=lambda b: b.user_id == b.author)
    def own_posts(b):
        return OK

    @blog.rule("bloggers_can_post", "post",
               context=fields(groups=bind("groups")),
               when=lambda b: "blogger" in b.groups)
    def bloggers(b):
        return OK

    @blog.rule("anyone_can_read", "read")
    def readers(b):
        return True

    return blog.build(**policy_kwargs)


def main():
    """Main demo function"""
    print("auval Demo Application")
    print("=" * 50)
    print()

    config = PolicyConfig(name="blog", log_level="WARNING")
    config.validate()
    configure_logging(config.log_level)

    audit = MemoryAuditLogger()
    policy = build_blog_policy(audit_logger=audit)
    print(f"✓ Built {policy!r}")
    print()

    requests = [
        (User("the_admin"), Post("someone"), "delete"),
        (User("the_blogger"), Post("someone"), "post"),
        (User("the_blogger"), Post("the_blogger"), "delete"),
        (User("the_blogger"), Post("the_blogger", locked=True), "delete"),
        (User("the_visitor"), Post("someone"), "post"),
        (User("the_visitor"), Post("someone"), "read"),
    ]

    for subject, obj, action in requests:
        verdict, rule_id, params = policy.authorize(subject, obj, action)
        extra = dict(params[4:])
        print(f"  {subject.id:<12} {action:<7} -> {verdict.value:<5} by {rule_id}"
              + (f" {extra}" if extra else ""))

    print()
    try:
        policy.authorize(User("mallory"), Post("someone"), "read")
    except FetchError as e:
        print(f"✓ Unknown user rejected before any rule ran: {e}")

    # Pre-supplied attributes bypass fetchers
    result = policy.authorize(User("mallory"), Post("someone"), "post", {"groups": ["blogger"]})
    print(f"✓ Pre-supplied groups honoured: {result.verdict.value} by {result.rule_id}")

    print()
    print(f"Audit trail: {len(audit.get_events())} event(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
