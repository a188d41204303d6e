"""Resolve management console (system) options."""

from __future__ import annotations

from loguru import logger

from src.app.core.options import SystemOptions
from src.app.core.resolver.context import ResolutionContext
from src.app.core.resolver.secret_source import SecretBackedField, templated
from src.app.entities.apimanager import APIManager


def system_secret_fields(
    apimanager: APIManager, ctx: ResolutionContext
) -> list[SecretBackedField]:
    c = ctx.constants
    seed = c.SYSTEM_SEED_SECRET
    return [
        SecretBackedField(
            "master_domain", seed, c.SYSTEM_SEED_MASTER_DOMAIN_FIELD, c.DEFAULT_SYSTEM_MASTER_DOMAIN
        ),
        SecretBackedField(
            "master_username", seed, c.SYSTEM_SEED_MASTER_USER_FIELD, c.DEFAULT_SYSTEM_MASTER_USER
        ),
        SecretBackedField(
            "master_password", seed, c.SYSTEM_SEED_MASTER_PASSWORD_FIELD, ctx.generated()
        ),
        SecretBackedField(
            "master_access_token",
            seed,
            c.SYSTEM_SEED_MASTER_ACCESS_TOKEN_FIELD,
            ctx.generated(),
        ),
        SecretBackedField(
            "seed_tenant_name",
            seed,
            c.SYSTEM_SEED_TENANT_NAME_FIELD,
            apimanager.spec.tenant_name or "",
        ),
        SecretBackedField(
            "admin_username", seed, c.SYSTEM_SEED_ADMIN_USER_FIELD, c.DEFAULT_SYSTEM_ADMIN_USER
        ),
        SecretBackedField(
            "admin_password", seed, c.SYSTEM_SEED_ADMIN_PASSWORD_FIELD, ctx.generated()
        ),
        SecretBackedField(
            "admin_access_token",
            seed,
            c.SYSTEM_SEED_ADMIN_ACCESS_TOKEN_FIELD,
            ctx.generated(),
        ),
        SecretBackedField("admin_email", seed, c.SYSTEM_SEED_ADMIN_EMAIL_FIELD, ""),
        SecretBackedField(
            "secret_key_base",
            c.SYSTEM_APP_SECRET,
            c.SYSTEM_APP_SECRET_KEY_BASE_FIELD,
            ctx.generated(),
        ),
        SecretBackedField(
            "database_url",
            c.SYSTEM_DATABASE_SECRET,
            c.SYSTEM_DATABASE_URL_FIELD,
            lambda: templated(c.DEFAULT_SYSTEM_DATABASE_URL, password=ctx.generate()),
        ),
        SecretBackedField(
            "redis_url",
            c.SYSTEM_REDIS_SECRET,
            c.SYSTEM_REDIS_URL_FIELD,
            c.DEFAULT_SYSTEM_REDIS_URL,
        ),
        SecretBackedField(
            "memcached_servers",
            c.SYSTEM_MEMCACHE_SECRET,
            c.SYSTEM_MEMCACHE_SERVERS_FIELD,
            c.DEFAULT_SYSTEM_MEMCACHE_SERVERS,
        ),
    ]


async def resolve_system(apimanager: APIManager, ctx: ResolutionContext) -> SystemOptions:
    """Build validated ``SystemOptions`` for one instance."""
    spec = apimanager.spec
    enabled = spec.resource_requirements_enabled

    secret_options = await ctx.secrets.resolve(system_secret_fields(apimanager, ctx))

    options = SystemOptions(
        app_label=spec.app_label,
        tenant_name=spec.tenant_name,
        wildcard_domain=spec.wildcard_domain,
        image=spec.system.image or ctx.constants.images.system,
        **secret_options,
        app_resources=ctx.resources("system-app", enabled),
        sidekiq_resources=ctx.resources("system-sidekiq", enabled),
        app_replicas=spec.system.app_spec.replicas,
        sidekiq_replicas=spec.system.sidekiq_spec.replicas,
    )
    options.validate()
    logger.debug(f"Resolved system options for {apimanager.namespace}/{apimanager.name}")
    return options
