"""Kr8s-based implementations of ClusterStore and SecretStore.

Uses the kr8s library for native async Kubernetes operations. Failures are
mapped onto the reconcile error taxonomy: 404 -> "absent", 409 on create ->
AlreadyExistsError, 409 on update -> ConflictError, connection problems ->
TransportError.
"""

from __future__ import annotations

import copy
from typing import Any, override

import httpx
import kr8s
from kr8s.asyncio.objects import APIObject, Secret, new_class
from loguru import logger

from src.app.core.errors import (
    AlreadyExistsError,
    ClusterError,
    ConflictError,
    TransportError,
)
from src.infra.k8s.store import ClusterStore, ObjectKey, SecretStore
from src.infra.k8s.utils import merge_patch, secret_values

# Server-populated fields that must not be sent back on a patch.
_READ_ONLY_METADATA = (
    "managedFields",
    "creationTimestamp",
    "generation",
    "selfLink",
    "resourceVersion",
)


def _status_code(error: kr8s.ServerError) -> int | None:
    response = getattr(error, "response", None)
    return response.status_code if response is not None else None


def _writable(body: dict[str, Any]) -> dict[str, Any]:
    """Copy of an object without status and server-populated metadata."""
    writable = copy.deepcopy(body)
    writable.pop("status", None)
    metadata = writable.setdefault("metadata", {})
    for field_name in _READ_ONLY_METADATA:
        metadata.pop(field_name, None)
    return writable


class Kr8sClusterStore(ClusterStore):
    """Cluster store using the kr8s async API.

    Note: The kr8s API client is NOT cached on the instance because it is
    tied to the event loop that was running when it was created, and the
    CLI drives each pass through ``run_sync()`` on a fresh loop.
    """

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        return await kr8s.asyncio.api()

    def _object(self, body: dict[str, Any], api: Any) -> APIObject:
        cls = new_class(body["kind"], version=body["apiVersion"], namespaced=True)
        return cls(body, api=api)

    @override
    async def get(
        self, api_version: str, kind: str, name: str, namespace: str
    ) -> dict[str, Any] | None:
        stub = {
            "apiVersion": api_version,
            "kind": kind,
            "metadata": {"name": name, "namespace": namespace},
        }
        try:
            obj = self._object(stub, await self._get_api())
            await obj.refresh()
        except kr8s.NotFoundError:
            return None
        except httpx.TransportError as e:
            raise TransportError(str(e), kind=kind, name=name) from e
        except kr8s.ServerError as e:
            if _status_code(e) == 404:
                return None
            raise ClusterError(str(e), kind=kind, name=name) from e
        return dict(obj.raw)

    @override
    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        key = ObjectKey.of(body)
        try:
            obj = self._object(copy.deepcopy(body), await self._get_api())
            await obj.create()
        except httpx.TransportError as e:
            raise TransportError(str(e), kind=key.kind, name=key.name) from e
        except kr8s.ServerError as e:
            if _status_code(e) == 409:
                raise AlreadyExistsError(
                    f"{key} already exists", kind=key.kind, name=key.name
                ) from e
            raise ClusterError(str(e), kind=key.kind, name=key.name) from e
        logger.debug(f"Created {key}")
        return dict(obj.raw)

    @override
    async def update(
        self, body: dict[str, Any], expected_token: str | None
    ) -> dict[str, Any]:
        key = ObjectKey.of(body)
        try:
            obj = self._object(copy.deepcopy(body), await self._get_api())
            await obj.refresh()
            current_token = obj.raw.get("metadata", {}).get("resourceVersion")
            if current_token != expected_token:
                raise ConflictError(
                    f"{key} is at resourceVersion {current_token}, expected {expected_token}",
                    kind=key.kind,
                    name=key.name,
                )
            patch = merge_patch(_writable(obj.raw), _writable(body))
            # resourceVersion in a merge patch is a precondition: the API server
            # answers 409 if the stored object moved on.
            patch.setdefault("metadata", {})["resourceVersion"] = expected_token
            await obj.patch(patch, type="merge")
        except kr8s.NotFoundError as e:
            raise ConflictError(
                f"{key} was deleted since resourceVersion {expected_token}",
                kind=key.kind,
                name=key.name,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(str(e), kind=key.kind, name=key.name) from e
        except kr8s.ServerError as e:
            if _status_code(e) == 409:
                raise ConflictError(
                    f"{key} was modified since resourceVersion {expected_token}",
                    kind=key.kind,
                    name=key.name,
                ) from e
            raise ClusterError(str(e), kind=key.kind, name=key.name) from e
        logger.debug(f"Patched {key}")
        return dict(obj.raw)

    @override
    async def is_registered(self, api_version: str, kind: str) -> bool:
        try:
            api = await self._get_api()
            resources = await api.api_resources()
        except httpx.TransportError as e:
            raise TransportError(str(e), kind=kind) from e
        except kr8s.ServerError as e:
            raise ClusterError(str(e), kind=kind) from e
        return any(
            resource.get("kind") == kind and resource.get("version") == api_version
            for resource in resources
        )


class Kr8sSecretStore(SecretStore):
    """Reads ``Secret`` objects through kr8s."""

    async def _get_api(self) -> Any:
        return await kr8s.asyncio.api()

    @override
    async def read(self, name: str, namespace: str) -> dict[str, str] | None:
        try:
            secret = Secret(
                {"metadata": {"name": name, "namespace": namespace}},
                api=await self._get_api(),
            )
            await secret.refresh()
        except kr8s.NotFoundError:
            return None
        except httpx.TransportError as e:
            raise TransportError(str(e), kind="Secret", name=name) from e
        except kr8s.ServerError as e:
            if _status_code(e) == 404:
                return None
            raise ClusterError(str(e), kind="Secret", name=name) from e
        try:
            return secret_values(secret.raw)
        except ValueError as e:
            # binascii.Error and UnicodeDecodeError are both ValueErrors
            raise ClusterError(
                f"secret data is not valid base64-encoded UTF-8: {e}",
                kind="Secret",
                name=name,
            ) from e
