"""Resolved per-subcomponent configuration.

Each options class is a plain frozen value produced by the resolver. Fields
that the resolver may leave unresolved are typed ``| None``; ``validate()``
rejects any instance whose required fields are empty before anything is
rendered or sent to the cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar

from src.app.core.constants import ResourceRequirements
from src.app.core.errors import OptionsValidationError


def _is_unset(value: object) -> bool:
    if isinstance(value, bool):
        return False
    return value is None or value == "" or value == 0


@dataclass(frozen=True)
class _Options:
    SUBCOMPONENT: ClassVar[str] = ""
    OPTIONAL: ClassVar[frozenset[str]] = frozenset()

    def validate(self) -> None:
        """Raise ``OptionsValidationError`` listing every empty required field."""
        missing = [
            f.name
            for f in fields(self)
            if f.name not in self.OPTIONAL and _is_unset(getattr(self, f.name))
        ]
        if missing:
            raise OptionsValidationError(self.SUBCOMPONENT, missing)


@dataclass(frozen=True)
class BackendOptions(_Options):
    SUBCOMPONENT: ClassVar[str] = "backend"
    OPTIONAL: ClassVar[frozenset[str]] = frozenset(
        {
            "storage_sentinel_hosts",
            "storage_sentinel_role",
            "queues_sentinel_hosts",
            "queues_sentinel_role",
            # empty dicts mean "unconstrained"
            "listener_resources",
            "worker_resources",
            "cron_resources",
        }
    )

    app_label: str | None
    tenant_name: str | None
    wildcard_domain: str | None
    image: str
    system_backend_username: str
    system_backend_password: str
    service_endpoint: str
    route_endpoint: str
    storage_url: str
    queues_url: str
    storage_sentinel_hosts: str
    storage_sentinel_role: str
    queues_sentinel_hosts: str
    queues_sentinel_role: str
    listener_resources: ResourceRequirements
    worker_resources: ResourceRequirements
    cron_resources: ResourceRequirements
    listener_replicas: int | None
    worker_replicas: int | None
    cron_replicas: int | None


@dataclass(frozen=True)
class ApicastOptions(_Options):
    SUBCOMPONENT: ClassVar[str] = "apicast"
    OPTIONAL: ClassVar[frozenset[str]] = frozenset(
        {"production_resources", "staging_resources"}
    )

    app_label: str | None
    tenant_name: str | None
    wildcard_domain: str | None
    image: str
    management_api: str
    openssl_verify: str
    response_codes: str
    production_resources: ResourceRequirements
    staging_resources: ResourceRequirements
    production_replicas: int | None
    staging_replicas: int | None


@dataclass(frozen=True)
class MemcachedOptions(_Options):
    SUBCOMPONENT: ClassVar[str] = "memcached"
    OPTIONAL: ClassVar[frozenset[str]] = frozenset({"resources"})

    app_label: str | None
    image: str
    resources: ResourceRequirements


@dataclass(frozen=True)
class SystemOptions(_Options):
    SUBCOMPONENT: ClassVar[str] = "system"
    OPTIONAL: ClassVar[frozenset[str]] = frozenset(
        {"admin_email", "app_resources", "sidekiq_resources"}
    )

    app_label: str | None
    tenant_name: str | None
    wildcard_domain: str | None
    image: str
    master_domain: str
    master_username: str
    master_password: str
    master_access_token: str
    seed_tenant_name: str
    admin_username: str
    admin_password: str
    admin_access_token: str
    admin_email: str
    secret_key_base: str
    database_url: str
    redis_url: str
    memcached_servers: str
    app_resources: ResourceRequirements
    sidekiq_resources: ResourceRequirements
    app_replicas: int | None
    sidekiq_replicas: int | None


@dataclass(frozen=True)
class ZyncOptions(_Options):
    SUBCOMPONENT: ClassVar[str] = "zync"
    OPTIONAL: ClassVar[frozenset[str]] = frozenset({"app_resources", "que_resources"})

    app_label: str | None
    image: str
    authentication_token: str
    secret_key_base: str
    database_password: str
    database_url: str
    app_resources: ResourceRequirements
    que_resources: ResourceRequirements
    app_replicas: int | None
    que_replicas: int | None
