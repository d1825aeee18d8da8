"""Shared test fixtures for topic-authz tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine

from topic_authz._engine import AuthzEngine
from topic_authz.config._config import EngineConfig
from topic_authz.credentials import BcryptScheme, SchemeRegistry, Sha256SaltScheme
from topic_authz.policy._rules import AclRule
from topic_authz.testing._seed import make_user, seed_store

# ---------------------------------------------------------------------------
# Hash schemes (low bcrypt cost)
# ---------------------------------------------------------------------------


def make_schemes() -> SchemeRegistry:
    registry = SchemeRegistry()
    registry.register("bcrypt", BcryptScheme(rounds=4))
    registry.register("sha256-salt", Sha256SaltScheme())
    return registry


# ---------------------------------------------------------------------------
# Sample store content
# ---------------------------------------------------------------------------

PASSWORD = "s3cret"

SAMPLE_RULES = [
    AclRule("*", "devices/{username}/#", 3),
    AclRule("*", "clients/{clientid}/status", 2),
    AclRule("*", "broadcast/+", 5),
    AclRule("alice", "shared/alice-only", 7),
    AclRule("bob", "shared/bob-only", 1),
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def schemes() -> SchemeRegistry:
    return make_schemes()


@pytest.fixture()
def store_url(tmp_path: Path) -> str:
    """A SQLite file so pooled connections share one database."""
    return f"sqlite:///{tmp_path / 'store.db'}"


@pytest.fixture()
def store_engine(store_url: str) -> Generator[Engine, None, None]:
    eng = create_engine(store_url)
    yield eng
    eng.dispose()


@pytest.fixture()
def sample_store(store_engine: Engine, schemes: SchemeRegistry) -> Engine:
    """Seed users, bindings and ACL rules.

    - alice: bcrypt, enabled, bound to client ``alice-1``
    - bob: bcrypt, enabled, no bindings
    - carol: bcrypt, disabled
    - legacy: sha256-salt with salt ``pepper``
    """
    seed_store(
        store_engine,
        users=[
            make_user("alice", PASSWORD, registry=schemes),
            make_user("bob", PASSWORD, registry=schemes),
            make_user("carol", PASSWORD, enabled=False, registry=schemes),
            make_user("legacy", PASSWORD, scheme="sha256-salt", salt="pepper", registry=schemes),
        ],
        bindings=[("alice", "alice-1")],
        rules=SAMPLE_RULES,
    )
    return store_engine


@pytest.fixture()
def config(store_url: str) -> EngineConfig:
    return EngineConfig(dsn=store_url, timeout_ms=5000, pool_max_size=4, pool_min_size=1)


@pytest.fixture()
def engine(
    config: EngineConfig, sample_store: Engine, schemes: SchemeRegistry
) -> Generator[AuthzEngine, None, None]:
    """An AuthzEngine over the sample store."""
    authz = AuthzEngine(config, schemes=schemes)
    try:
        yield authz
    finally:
        authz.close()
