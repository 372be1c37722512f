"""Shared pytest fixtures for resource engine unit tests."""

import pytest

from interoperator.resources import ResourceManager
from tests.fixtures.catalog_resources import CONTROL_NAMESPACE, catalog_objects
from tests.fixtures.cluster import FakeClusterClient


@pytest.fixture
def cluster():
    """Source cluster seeded with the sample catalog and requests."""
    return FakeClusterClient(catalog_objects())


@pytest.fixture
def target():
    """Empty target cluster."""
    return FakeClusterClient()


@pytest.fixture
def manager():
    """Resource manager reading the catalog from the sample control namespace."""
    return ResourceManager(
        control_namespace=CONTROL_NAMESPACE,
        graceful_delete_api_versions=["deployment.servicefabrik.io/v1alpha1"],
    )
