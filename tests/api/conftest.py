# tests/api/conftest.py
"""
Shared fixtures for API tests.
Uses FastAPI's TestClient with dependency overrides to inject a dispatcher
and cache built over the in-memory snapshot fixture.
"""

import pytest
from fastapi.testclient import TestClient

from mixsched.admission.dispatcher import AdmissionDispatcher
from mixsched.api.app import create_app
from mixsched.api.dependencies import get_cache, get_dispatcher
from mixsched.placement.decision import PlacementEngine
from mixsched.policy.resolver import PolicyResolver


@pytest.fixture
def dispatcher(synced_cache, settings):
    """A real dispatcher over the synced snapshot cache."""
    return AdmissionDispatcher(PolicyResolver(settings), PlacementEngine(synced_cache, settings), synced_cache)


@pytest.fixture
def client(dispatcher, synced_cache):
    """Creates a TestClient with dependency overrides for the dispatcher and cache."""
    app = create_app()
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_cache] = lambda: synced_cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def deployment_review():
    """An AdmissionReview for the creation of a three-replica Deployment."""
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
            "kind": {"group": "apps", "version": "v1", "kind": "Deployment"},
            "resource": {"group": "apps", "version": "v1", "resource": "deployments"},
            "operation": "CREATE",
            "namespace": "default",
            "userInfo": {"username": "admin"},
            "object": {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "metadata": {"name": "web", "namespace": "default"},
                "spec": {
                    "replicas": 3,
                    "selector": {"matchLabels": {"app": "web"}},
                    "template": {
                        "metadata": {"labels": {"app": "web"}},
                        "spec": {"containers": [{"name": "web", "image": "nginx"}]},
                    },
                },
            },
            "oldObject": None,
            "dryRun": False,
        },
    }
