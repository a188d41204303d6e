"""Resolve backend (listener/worker/cron) options."""

from __future__ import annotations

from loguru import logger

from src.app.core.options import BackendOptions
from src.app.core.resolver.context import ResolutionContext
from src.app.core.resolver.secret_source import SecretBackedField, templated
from src.app.entities.apimanager import APIManager


def backend_secret_fields(
    apimanager: APIManager, ctx: ResolutionContext
) -> list[SecretBackedField]:
    c = ctx.constants
    spec = apimanager.spec
    return [
        SecretBackedField(
            "system_backend_username",
            c.BACKEND_INTERNAL_API_SECRET,
            c.BACKEND_INTERNAL_API_USERNAME_FIELD,
            c.DEFAULT_BACKEND_USERNAME,
        ),
        SecretBackedField(
            "system_backend_password",
            c.BACKEND_INTERNAL_API_SECRET,
            c.BACKEND_INTERNAL_API_PASSWORD_FIELD,
            ctx.generated(),
        ),
        SecretBackedField(
            "service_endpoint",
            c.BACKEND_LISTENER_SECRET,
            c.BACKEND_LISTENER_SERVICE_ENDPOINT_FIELD,
            c.DEFAULT_BACKEND_SERVICE_ENDPOINT,
        ),
        SecretBackedField(
            "route_endpoint",
            c.BACKEND_LISTENER_SECRET,
            c.BACKEND_LISTENER_ROUTE_ENDPOINT_FIELD,
            templated(
                c.DEFAULT_BACKEND_ROUTE_ENDPOINT,
                tenant=spec.tenant_name,
                domain=spec.wildcard_domain,
            ),
        ),
        SecretBackedField(
            "storage_url",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_STORAGE_URL_FIELD,
            c.DEFAULT_BACKEND_REDIS_STORAGE_URL,
        ),
        SecretBackedField(
            "queues_url",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_QUEUES_URL_FIELD,
            c.DEFAULT_BACKEND_REDIS_QUEUES_URL,
        ),
        SecretBackedField(
            "storage_sentinel_hosts",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_STORAGE_SENTINEL_HOSTS_FIELD,
            "",
        ),
        SecretBackedField(
            "storage_sentinel_role",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_STORAGE_SENTINEL_ROLE_FIELD,
            "",
        ),
        SecretBackedField(
            "queues_sentinel_hosts",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_QUEUES_SENTINEL_HOSTS_FIELD,
            "",
        ),
        SecretBackedField(
            "queues_sentinel_role",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_QUEUES_SENTINEL_ROLE_FIELD,
            "",
        ),
    ]


async def resolve_backend(apimanager: APIManager, ctx: ResolutionContext) -> BackendOptions:
    """Build validated ``BackendOptions`` for one instance.

    Raises:
        OptionsValidationError: If a required field could not be resolved
        MissingSecretFieldError: If a backend secret lacks a field
    """
    spec = apimanager.spec
    enabled = spec.resource_requirements_enabled

    secret_options = await ctx.secrets.resolve(backend_secret_fields(apimanager, ctx))

    options = BackendOptions(
        app_label=spec.app_label,
        tenant_name=spec.tenant_name,
        wildcard_domain=spec.wildcard_domain,
        image=spec.backend.image or ctx.constants.images.backend,
        **secret_options,
        listener_resources=ctx.resources("backend-listener", enabled),
        worker_resources=ctx.resources("backend-worker", enabled),
        cron_resources=ctx.resources("backend-cron", enabled),
        listener_replicas=spec.backend.listener_spec.replicas,
        worker_replicas=spec.backend.worker_spec.replicas,
        cron_replicas=spec.backend.cron_spec.replicas,
    )
    options.validate()
    logger.debug(f"Resolved backend options for {apimanager.namespace}/{apimanager.name}")
    return options
