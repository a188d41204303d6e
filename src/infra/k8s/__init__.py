"""Kubernetes infrastructure abstraction layer.

This module provides the cluster and secret stores the reconciler talks to,
with a kr8s backend for real clusters and an in-memory backend for tests and
dry runs.

Example:
    from src.infra.k8s import InMemoryClusterStore, ClusterSecretStore, run_sync

    cluster = InMemoryClusterStore()
    secrets = ClusterSecretStore(cluster)
    body = run_sync(cluster.get("apps/v1", "Deployment", "backend-listener", "ns"))
"""

from .helpers import get_cluster_store, get_namespace, get_secret_store
from .memory_store import (
    ClusterSecretStore,
    InMemoryClusterStore,
    InMemorySecretStore,
    StoreCall,
)
from .store import ClusterStore, ObjectKey, SecretStore
from .utils import run_sync, secret_values

__all__ = [
    # Interfaces
    "ClusterStore",
    "SecretStore",
    "ObjectKey",
    # Backends
    "InMemoryClusterStore",
    "InMemorySecretStore",
    "ClusterSecretStore",
    "StoreCall",
    # Factories
    "get_cluster_store",
    "get_secret_store",
    "get_namespace",
    # Utilities
    "run_sync",
    "secret_values",
]
