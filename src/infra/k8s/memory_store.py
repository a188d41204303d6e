"""In-memory cluster and secret stores.

Deterministic stand-ins for the API server: objects are deep-copied on the
way in and out, ``resourceVersion`` is bumped on every write, and every
mutating call is recorded so callers can assert on what was sent.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, override

from src.app.core.errors import AlreadyExistsError, ConflictError
from src.infra.k8s.store import ClusterStore, ObjectKey, SecretStore
from src.infra.k8s.utils import secret_values

BUILTIN_KINDS: frozenset[tuple[str, str]] = frozenset(
    {
        ("v1", "ConfigMap"),
        ("v1", "Secret"),
        ("v1", "Service"),
        ("apps/v1", "Deployment"),
    }
)


@dataclass
class StoreCall:
    """A recorded mutating call."""

    verb: str
    key: ObjectKey
    body: dict[str, Any] = field(repr=False)


class InMemoryClusterStore(ClusterStore):
    """Cluster store backed by a dict."""

    def __init__(
        self,
        objects: list[dict[str, Any]] | None = None,
        *,
        extra_kinds: set[tuple[str, str]] | None = None,
    ) -> None:
        self._objects: dict[ObjectKey, dict[str, Any]] = {}
        self._registered = set(BUILTIN_KINDS) | set(extra_kinds or ())
        self._version = 0
        self.calls: list[StoreCall] = []
        for obj in objects or []:
            self.put(obj)

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _key(self, api_version: str, kind: str, name: str, namespace: str) -> ObjectKey:
        return ObjectKey(api_version, kind, name, namespace)

    def put(self, body: dict[str, Any]) -> dict[str, Any]:
        """Seed an object directly, bypassing conflict checks and call recording."""
        stored = copy.deepcopy(body)
        metadata = stored.setdefault("metadata", {})
        metadata.setdefault("uid", str(uuid.uuid4()))
        metadata["resourceVersion"] = self._next_version()
        self._objects[ObjectKey.of(stored)] = stored
        return copy.deepcopy(stored)

    def register(self, api_version: str, kind: str) -> None:
        """Simulate installing the CRD for a kind."""
        self._registered.add((api_version, kind))

    def objects(self, kind: str | None = None) -> list[dict[str, Any]]:
        """Return copies of stored objects, optionally filtered by kind."""
        return [
            copy.deepcopy(obj)
            for key, obj in sorted(self._objects.items(), key=lambda item: str(item[0]))
            if kind is None or key.kind == kind
        ]

    def verbs(self) -> list[str]:
        return [call.verb for call in self.calls]

    @override
    async def get(
        self, api_version: str, kind: str, name: str, namespace: str
    ) -> dict[str, Any] | None:
        obj = self._objects.get(self._key(api_version, kind, name, namespace))
        return copy.deepcopy(obj) if obj is not None else None

    @override
    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        key = ObjectKey.of(body)
        self.calls.append(StoreCall("create", key, copy.deepcopy(body)))
        if key in self._objects:
            raise AlreadyExistsError(
                f"{key} already exists", kind=key.kind, name=key.name
            )
        return self.put(body)

    @override
    async def update(
        self, body: dict[str, Any], expected_token: str | None
    ) -> dict[str, Any]:
        key = ObjectKey.of(body)
        self.calls.append(StoreCall("update", key, copy.deepcopy(body)))
        current = self._objects.get(key)
        current_token = current["metadata"]["resourceVersion"] if current else None
        if current is None or current_token != expected_token:
            raise ConflictError(
                f"resourceVersion {expected_token} does not match {current_token}",
                kind=key.kind,
                name=key.name,
            )
        stored = copy.deepcopy(body)
        stored["metadata"]["uid"] = current["metadata"]["uid"]
        stored["metadata"]["resourceVersion"] = self._next_version()
        self._objects[key] = stored
        return copy.deepcopy(stored)

    @override
    async def is_registered(self, api_version: str, kind: str) -> bool:
        return (api_version, kind) in self._registered


class InMemorySecretStore(SecretStore):
    """Secret store backed by a ``{(namespace, name): {field: value}}`` dict."""

    def __init__(self, secrets: dict[tuple[str, str], dict[str, str]] | None = None) -> None:
        self._secrets = {key: dict(values) for key, values in (secrets or {}).items()}

    def set(self, namespace: str, name: str, values: dict[str, str]) -> None:
        self._secrets[(namespace, name)] = dict(values)

    @override
    async def read(self, name: str, namespace: str) -> dict[str, str] | None:
        values = self._secrets.get((namespace, name))
        return dict(values) if values is not None else None


class ClusterSecretStore(SecretStore):
    """Reads secrets as ``Secret`` objects from any cluster store.

    Lets a pass against an in-memory cluster see the secrets it created
    earlier, the same way a real cluster would.
    """

    def __init__(self, cluster: ClusterStore) -> None:
        self._cluster = cluster

    @override
    async def read(self, name: str, namespace: str) -> dict[str, str] | None:
        body = await self._cluster.get("v1", "Secret", name, namespace)
        if body is None:
            return None
        return secret_values(body)
