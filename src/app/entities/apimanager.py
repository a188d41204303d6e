"""APIManager custom resource: the root specification of one managed instance.

Models mirror the wire format (camelCase) and are frozen: a pass reads the
RootSpec, it never writes to it. Unset optional fields stay ``None`` so the
resolver can tell "not specified" apart from an explicit value.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _SpecModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ReplicasSpec(_SpecModel):
    """Replica count for a single process role."""

    replicas: int | None = None


class ApicastSpec(_SpecModel):
    image: str | None = None
    apicast_management_api: str = Field(default="status", alias="apicastManagementAPI")
    open_ssl_verify: bool = Field(default=False, alias="openSSLVerify")
    include_response_codes: bool = True
    production_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)
    staging_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)


class BackendSpec(_SpecModel):
    image: str | None = None
    listener_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)
    worker_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)
    cron_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)


class SystemSpec(_SpecModel):
    image: str | None = None
    memcached_image: str | None = None
    app_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)
    sidekiq_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)


class ZyncSpec(_SpecModel):
    image: str | None = None
    app_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)
    que_spec: ReplicasSpec = Field(default_factory=ReplicasSpec)


class APIManagerSpec(_SpecModel):
    """Desired state of the whole platform instance."""

    app_label: str | None = None
    tenant_name: str | None = None
    wildcard_domain: str | None = None
    resource_requirements_enabled: bool = True
    apicast: ApicastSpec = Field(default_factory=ApicastSpec)
    backend: BackendSpec = Field(default_factory=BackendSpec)
    system: SystemSpec = Field(default_factory=SystemSpec)
    zync: ZyncSpec = Field(default_factory=ZyncSpec)


class ObjectMeta(_SpecModel):
    name: str
    namespace: str = "default"
    uid: str = ""


class APIManager(_SpecModel):
    """The custom resource as read from the cluster (or a manifest file)."""

    api_version: str = "apps.3scale.net/v1alpha1"
    kind: str = "APIManager"
    metadata: ObjectMeta
    spec: APIManagerSpec = Field(default_factory=APIManagerSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def owner_reference(self) -> dict[str, Any]:
        """Controller owner reference pointing back at this instance."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.metadata.name,
            "uid": self.metadata.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> APIManager:
        """Build from a raw Kubernetes object dict."""
        return cls.model_validate(manifest)
