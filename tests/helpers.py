"""Builders shared by the operator tests."""

import itertools
from typing import Any

from src.app.entities.apimanager import APIManager

NAMESPACE = "operator-test"
OWNER_UID = "2d1c1f5e-0000-4000-8000-000000000001"


class CountingGenerator:
    """Deterministic stand-in for the random secret generator."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self.calls = 0

    def __call__(self, length: int) -> str:
        self.calls += 1
        return f"gen{next(self._counter):0{length - 3}d}"


def make_apimanager(**spec_overrides: Any) -> APIManager:
    """APIManager for tenant ``acme`` with every replica count set."""
    spec: dict[str, Any] = {
        "appLabel": "3scale-api-management",
        "tenantName": "acme",
        "wildcardDomain": "example.com",
        "resourceRequirementsEnabled": True,
        "apicast": {"productionSpec": {"replicas": 1}, "stagingSpec": {"replicas": 1}},
        "backend": {
            "listenerSpec": {"replicas": 3},
            "workerSpec": {"replicas": 1},
            "cronSpec": {"replicas": 1},
        },
        "system": {"appSpec": {"replicas": 1}, "sidekiqSpec": {"replicas": 1}},
        "zync": {"appSpec": {"replicas": 1}, "queSpec": {"replicas": 1}},
    }
    spec.update(spec_overrides)
    return APIManager.from_manifest(
        {
            "apiVersion": "apps.3scale.net/v1alpha1",
            "kind": "APIManager",
            "metadata": {"name": "example-apimanager", "namespace": NAMESPACE, "uid": OWNER_UID},
            "spec": spec,
        }
    )
