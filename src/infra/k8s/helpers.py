from __future__ import annotations

import os

from cachetools.func import lru_cache  # type: ignore

from src.infra.k8s.store import ClusterStore, SecretStore


@lru_cache(maxsize=1)
def get_cluster_store() -> ClusterStore:
    """Get the kr8s-backed ClusterStore.

    Returns:
        An instance of ClusterStore talking to the current kube context
    """
    from src.infra.k8s.kr8s_store import Kr8sClusterStore

    return Kr8sClusterStore()


@lru_cache(maxsize=1)
def get_secret_store() -> SecretStore:
    """Get the kr8s-backed SecretStore."""
    from src.infra.k8s.kr8s_store import Kr8sSecretStore

    return Kr8sSecretStore()


def get_namespace(default: str) -> str:
    """Get the watch namespace from the environment, falling back to ``default``."""
    return os.environ.get("WATCH_NAMESPACE", default)
