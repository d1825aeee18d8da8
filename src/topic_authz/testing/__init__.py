"""topic-authz testing utilities — store seeding, assertions, and fixtures.

Example::

    from topic_authz.testing import assert_allowed, make_user, seed_store

    def test_alice_connects(authz_engine):
        seed_store(authz_engine.pools.ensure(), users=[make_user("alice", "pw")])
        assert_allowed(authz_engine.authenticate("alice", "pw"))
"""

from topic_authz.testing._assertions import assert_allowed, assert_denied
from topic_authz.testing._fixtures import authz_engine, authz_store_url
from topic_authz.testing._seed import make_user, seed_store

__all__ = [
    "assert_allowed",
    "assert_denied",
    "authz_engine",
    "authz_store_url",
    "make_user",
    "seed_store",
]
