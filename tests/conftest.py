"""Shared fixtures for the operator test suite."""

import pytest

from src.app.core.constants import OperatorConstants
from src.app.core.resolver import ResolutionContext, SecretSource
from src.app.entities.apimanager import APIManager
from src.infra.k8s import ClusterSecretStore, InMemoryClusterStore, InMemorySecretStore
from tests.helpers import NAMESPACE, CountingGenerator, make_apimanager


@pytest.fixture
def constants() -> OperatorConstants:
    return OperatorConstants()


@pytest.fixture
def generator() -> CountingGenerator:
    return CountingGenerator()


@pytest.fixture
def apimanager() -> APIManager:
    return make_apimanager()


@pytest.fixture
def secret_store() -> InMemorySecretStore:
    return InMemorySecretStore()


@pytest.fixture
def resolution_context(constants, secret_store, generator) -> ResolutionContext:
    return ResolutionContext(
        constants=constants,
        secrets=SecretSource(secret_store, NAMESPACE),
        generator=generator,
    )


@pytest.fixture
def cluster() -> InMemoryClusterStore:
    return InMemoryClusterStore()


@pytest.fixture
def cluster_secrets(cluster) -> ClusterSecretStore:
    return ClusterSecretStore(cluster)
