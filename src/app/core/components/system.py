"""Desired resources for the management console (system app and sidekiq)."""

from __future__ import annotations

from src.app.core.components.common import (
    Body,
    BuildTarget,
    config_map,
    container,
    deployment,
    env_from_config_map,
    env_from_secret,
    secret,
    service,
)
from src.app.core.options import SystemOptions
from src.app.core.reconciler.resources import DesiredResource

COMPONENT = "system"
ENVIRONMENT_CONFIG_MAP = "system-environment"


def _environment(options: SystemOptions, target: BuildTarget) -> dict[str, str]:
    return {
        "RAILS_ENV": "production",
        "THREESCALE_SUPERDOMAIN": options.wildcard_domain or "",
        "TENANT_NAME": options.tenant_name or "",
        "BACKEND_ROUTE": f"{target.constants.DEFAULT_BACKEND_SERVICE_ENDPOINT}/internal/",
        "AMP_RELEASE": target.constants.RELEASE,
    }


def _env(target: BuildTarget) -> list[Body]:
    c = target.constants
    env = [
        env_from_config_map(key, ENVIRONMENT_CONFIG_MAP, key)
        for key in ("RAILS_ENV", "THREESCALE_SUPERDOMAIN", "TENANT_NAME", "AMP_RELEASE")
    ]
    seed = c.SYSTEM_SEED_SECRET
    env += [
        env_from_secret(field, seed, field)
        for field in (
            c.SYSTEM_SEED_MASTER_DOMAIN_FIELD,
            c.SYSTEM_SEED_MASTER_USER_FIELD,
            c.SYSTEM_SEED_MASTER_PASSWORD_FIELD,
            c.SYSTEM_SEED_MASTER_ACCESS_TOKEN_FIELD,
            c.SYSTEM_SEED_ADMIN_USER_FIELD,
            c.SYSTEM_SEED_ADMIN_PASSWORD_FIELD,
            c.SYSTEM_SEED_ADMIN_ACCESS_TOKEN_FIELD,
            c.SYSTEM_SEED_ADMIN_EMAIL_FIELD,
        )
    ]
    env += [
        env_from_secret(
            "SECRET_KEY_BASE", c.SYSTEM_APP_SECRET, c.SYSTEM_APP_SECRET_KEY_BASE_FIELD
        ),
        env_from_secret("DATABASE_URL", c.SYSTEM_DATABASE_SECRET, c.SYSTEM_DATABASE_URL_FIELD),
        env_from_secret("REDIS_URL", c.SYSTEM_REDIS_SECRET, c.SYSTEM_REDIS_URL_FIELD),
        env_from_secret(
            "MEMCACHE_SERVERS", c.SYSTEM_MEMCACHE_SECRET, c.SYSTEM_MEMCACHE_SERVERS_FIELD
        ),
        env_from_secret(
            "BACKEND_SHARED_SECRET",
            c.BACKEND_INTERNAL_API_SECRET,
            c.BACKEND_INTERNAL_API_PASSWORD_FIELD,
        ),
        env_from_secret(
            "ZYNC_AUTHENTICATION_TOKEN", c.ZYNC_SECRET, c.ZYNC_AUTHENTICATION_TOKEN_FIELD
        ),
    ]
    return env


def _secrets(options: SystemOptions, target: BuildTarget) -> list[Body]:
    c = target.constants
    labels = target.labels(options.app_label, COMPONENT)
    return [
        secret(
            target,
            c.SYSTEM_SEED_SECRET,
            labels,
            {
                c.SYSTEM_SEED_MASTER_DOMAIN_FIELD: options.master_domain,
                c.SYSTEM_SEED_MASTER_USER_FIELD: options.master_username,
                c.SYSTEM_SEED_MASTER_PASSWORD_FIELD: options.master_password,
                c.SYSTEM_SEED_MASTER_ACCESS_TOKEN_FIELD: options.master_access_token,
                c.SYSTEM_SEED_TENANT_NAME_FIELD: options.seed_tenant_name,
                c.SYSTEM_SEED_ADMIN_USER_FIELD: options.admin_username,
                c.SYSTEM_SEED_ADMIN_PASSWORD_FIELD: options.admin_password,
                c.SYSTEM_SEED_ADMIN_ACCESS_TOKEN_FIELD: options.admin_access_token,
                c.SYSTEM_SEED_ADMIN_EMAIL_FIELD: options.admin_email,
            },
        ),
        secret(
            target,
            c.SYSTEM_APP_SECRET,
            labels,
            {c.SYSTEM_APP_SECRET_KEY_BASE_FIELD: options.secret_key_base},
        ),
        secret(
            target,
            c.SYSTEM_DATABASE_SECRET,
            labels,
            {c.SYSTEM_DATABASE_URL_FIELD: options.database_url},
        ),
        secret(target, c.SYSTEM_REDIS_SECRET, labels, {c.SYSTEM_REDIS_URL_FIELD: options.redis_url}),
        secret(
            target,
            c.SYSTEM_MEMCACHE_SECRET,
            labels,
            {c.SYSTEM_MEMCACHE_SERVERS_FIELD: options.memcached_servers},
        ),
    ]


def build_system(options: SystemOptions, target: BuildTarget) -> list[DesiredResource]:
    """Render every system child resource in apply order."""
    labels = target.labels(options.app_label, COMPONENT)
    app_labels = target.labels(options.app_label, COMPONENT, "app")

    app = deployment(
        target,
        "system-app",
        app_labels,
        options.app_replicas,
        [
            container(
                "system-provider",
                options.image,
                options.app_resources,
                env=_env(target),
                ports=[
                    {"name": "provider", "containerPort": 3000, "protocol": "TCP"},
                    {"name": "master", "containerPort": 3002, "protocol": "TCP"},
                ],
                args=["env", "TENANT_MODE=multitenant", "unicorn", "-c", "config/unicorn.rb"],
            )
        ],
    )
    sidekiq = deployment(
        target,
        "system-sidekiq",
        target.labels(options.app_label, COMPONENT, "sidekiq"),
        options.sidekiq_replicas,
        [
            container(
                "system-sidekiq",
                options.image,
                options.sidekiq_resources,
                env=_env(target),
                args=["rake", "sidekiq:worker", "RAILS_MAX_THREADS=25"],
            )
        ],
    )

    bodies = [
        *_secrets(options, target),
        config_map(target, ENVIRONMENT_CONFIG_MAP, labels, _environment(options, target)),
        app,
        sidekiq,
        service(target, "system-provider", app_labels, "system-app", [("http", 3000, 3000)]),
        service(target, "system-master", app_labels, "system-app", [("http", 80, 3002)]),
    ]
    return [target.desired(body) for body in bodies]
