# tests/conftest.py

import pytest
from factories import make_node

from mixsched.cluster.cache import ClusterStateCache
from mixsched.cluster.snapshot import ClusterSnapshot, ResourceKind
from mixsched.models.capacity import CapacityClass
from mixsched.models.cluster import NamespaceState
from mixsched.models.policy import WebhookSettings

CONFIG_ENV_VARS = (
    "PORT",
    "MIX_SCHEDULER_ENABLED",
    "EXCLUDED_NAMESPACES",
    "SPOT_NODE_WEIGHT",
    "ONDEMAND_NODE_WEIGHT",
    "ONDEMAND_MIN_POD_NUM",
    "SPOT_MIN_POD_NUM",
    "CACHE_WATCH_TIMEOUT_SECONDS",
    "CACHE_RETRY_BACKOFF_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """
    Removes every configuration variable read at access time so each test
    starts from the documented defaults, regardless of the host environment.
    """
    for key in CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    """Default policy settings: enabled, spot 10, on-demand 1, both floors 1."""
    return WebhookSettings()


@pytest.fixture
def snapshot():
    """A snapshot with two spot nodes, two on-demand nodes, one unlabeled node and two namespaces."""
    snap = ClusterSnapshot()
    snap.replace(
        ResourceKind.NODES,
        [
            make_node("spot-1", CapacityClass.SPOT),
            make_node("spot-2", CapacityClass.SPOT),
            make_node("od-1", CapacityClass.ON_DEMAND),
            make_node("od-2", CapacityClass.ON_DEMAND),
            make_node("plain-1"),
        ],
    )
    snap.replace(
        ResourceKind.NAMESPACES,
        [
            NamespaceState(name="default"),
            NamespaceState(name="team-a", labels={"team": "a"}),
        ],
    )
    snap.replace(ResourceKind.PODS, [])
    return snap


@pytest.fixture
def synced_cache(snapshot):
    """A cache serving from the snapshot fixture, with the readiness gate open."""
    cache = ClusterStateCache(snapshot=snapshot)
    cache.gate.open()
    return cache
