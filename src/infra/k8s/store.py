"""Abstract cluster and secret store interfaces.

Defines the contract the reconciler needs from the cluster API. Backends
(kr8s, in-memory) implement it; the core never imports a backend directly.

Objects travel as plain Kubernetes dicts (``apiVersion``, ``kind``,
``metadata``...). ``metadata.resourceVersion`` is the concurrency token.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ObjectKey:
    """Identity of a namespaced object."""

    api_version: str
    kind: str
    name: str
    namespace: str

    @classmethod
    def of(cls, body: dict[str, Any]) -> ObjectKey:
        metadata = body.get("metadata", {})
        return cls(
            api_version=body["apiVersion"],
            kind=body["kind"],
            name=metadata["name"],
            namespace=metadata.get("namespace", ""),
        )

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


class ClusterStore(ABC):
    """Read/write access to namespaced cluster objects.

    All methods are async. Use ``run_sync()`` to call from synchronous code.
    """

    @abstractmethod
    async def get(
        self, api_version: str, kind: str, name: str, namespace: str
    ) -> dict[str, Any] | None:
        """Fetch a live object.

        Returns:
            The object, or None if it does not exist

        Raises:
            TransportError: If the cluster API is unreachable
        """
        ...

    @abstractmethod
    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create an object.

        Returns:
            The object as stored by the cluster

        Raises:
            AlreadyExistsError: If an object with the same name exists
        """
        ...

    @abstractmethod
    async def update(
        self, body: dict[str, Any], expected_token: str | None
    ) -> dict[str, Any]:
        """Write back a modified live object.

        Args:
            body: Full object, as fetched and then modified
            expected_token: resourceVersion the modification was based on

        Raises:
            ConflictError: If the stored resourceVersion differs
        """
        ...

    @abstractmethod
    async def is_registered(self, api_version: str, kind: str) -> bool:
        """Check whether the cluster serves a kind (e.g. a CRD is installed)."""
        ...


class SecretStore(ABC):
    """Read access to confidentially stored key/value data."""

    @abstractmethod
    async def read(self, name: str, namespace: str) -> dict[str, str] | None:
        """Read all fields of a secret.

        Returns:
            Decoded field values, or None if the secret does not exist
        """
        ...
