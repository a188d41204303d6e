"""Desired resources for the backend (listener, worker, cron)."""

from __future__ import annotations

from src.app.core.components.common import (
    Body,
    BuildTarget,
    config_map,
    container,
    deployment,
    env_from_config_map,
    env_from_secret,
    env_value,
    secret,
    service,
)
from src.app.core.components.monitoring import (
    backend_rules,
    grafana_dashboard,
    prometheus_rule,
    service_monitor,
)
from src.app.core.options import BackendOptions
from src.app.core.reconciler.resources import DesiredResource

COMPONENT = "backend"
ENVIRONMENT_CONFIG_MAP = "backend-environment"


def _redis_env(target: BuildTarget) -> list[Body]:
    c = target.constants
    return [
        env_from_secret(
            "CONFIG_REDIS_PROXY", c.BACKEND_REDIS_SECRET, c.BACKEND_REDIS_STORAGE_URL_FIELD
        ),
        env_from_secret(
            "CONFIG_REDIS_SENTINEL_HOSTS",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_STORAGE_SENTINEL_HOSTS_FIELD,
        ),
        env_from_secret(
            "CONFIG_REDIS_SENTINEL_ROLE",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_STORAGE_SENTINEL_ROLE_FIELD,
        ),
        env_from_secret(
            "CONFIG_QUEUES_MASTER_NAME", c.BACKEND_REDIS_SECRET, c.BACKEND_REDIS_QUEUES_URL_FIELD
        ),
        env_from_secret(
            "CONFIG_QUEUES_SENTINEL_HOSTS",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_QUEUES_SENTINEL_HOSTS_FIELD,
        ),
        env_from_secret(
            "CONFIG_QUEUES_SENTINEL_ROLE",
            c.BACKEND_REDIS_SECRET,
            c.BACKEND_REDIS_QUEUES_SENTINEL_ROLE_FIELD,
        ),
        env_from_config_map("RACK_ENV", ENVIRONMENT_CONFIG_MAP, "RACK_ENV"),
    ]


def _internal_api_env(target: BuildTarget) -> list[Body]:
    c = target.constants
    return [
        env_from_secret(
            "CONFIG_INTERNAL_API_USER",
            c.BACKEND_INTERNAL_API_SECRET,
            c.BACKEND_INTERNAL_API_USERNAME_FIELD,
        ),
        env_from_secret(
            "CONFIG_INTERNAL_API_PASSWORD",
            c.BACKEND_INTERNAL_API_SECRET,
            c.BACKEND_INTERNAL_API_PASSWORD_FIELD,
        ),
    ]


def _secrets(options: BackendOptions, target: BuildTarget) -> list[Body]:
    c = target.constants
    labels = target.labels(options.app_label, COMPONENT)
    return [
        secret(
            target,
            c.BACKEND_INTERNAL_API_SECRET,
            labels,
            {
                c.BACKEND_INTERNAL_API_USERNAME_FIELD: options.system_backend_username,
                c.BACKEND_INTERNAL_API_PASSWORD_FIELD: options.system_backend_password,
            },
        ),
        secret(
            target,
            c.BACKEND_LISTENER_SECRET,
            labels,
            {
                c.BACKEND_LISTENER_SERVICE_ENDPOINT_FIELD: options.service_endpoint,
                c.BACKEND_LISTENER_ROUTE_ENDPOINT_FIELD: options.route_endpoint,
            },
        ),
        secret(
            target,
            c.BACKEND_REDIS_SECRET,
            labels,
            {
                c.BACKEND_REDIS_STORAGE_URL_FIELD: options.storage_url,
                c.BACKEND_REDIS_QUEUES_URL_FIELD: options.queues_url,
                c.BACKEND_REDIS_STORAGE_SENTINEL_HOSTS_FIELD: options.storage_sentinel_hosts,
                c.BACKEND_REDIS_STORAGE_SENTINEL_ROLE_FIELD: options.storage_sentinel_role,
                c.BACKEND_REDIS_QUEUES_SENTINEL_HOSTS_FIELD: options.queues_sentinel_hosts,
                c.BACKEND_REDIS_QUEUES_SENTINEL_ROLE_FIELD: options.queues_sentinel_role,
            },
        ),
    ]


def build_backend(options: BackendOptions, target: BuildTarget) -> list[DesiredResource]:
    """Render every backend child resource in apply order."""
    labels = target.labels(options.app_label, COMPONENT)

    listener = deployment(
        target,
        "backend-listener",
        target.labels(options.app_label, COMPONENT, "listener"),
        options.listener_replicas,
        [
            container(
                "backend-listener",
                options.image,
                options.listener_resources,
                env=[
                    *_redis_env(target),
                    *_internal_api_env(target),
                    env_value("PUMA_WORKERS", "16"),
                    env_value("CONFIG_LOG_PATH", "/dev/stdout"),
                ],
                ports=[{"name": "http", "containerPort": 3000, "protocol": "TCP"}],
                args=[
                    "bin/3scale_backend", "start", "-e", "production",
                    "-p", "3000", "-x", "/dev/stdout",
                ],
            )
        ],
    )
    worker = deployment(
        target,
        "backend-worker",
        target.labels(options.app_label, COMPONENT, "worker"),
        options.worker_replicas,
        [
            container(
                "backend-worker",
                options.image,
                options.worker_resources,
                env=[*_redis_env(target), env_value("CONFIG_WORKERS_LOG_FILE", "/dev/stdout")],
                ports=[{"name": "metrics", "containerPort": 9421, "protocol": "TCP"}],
                args=["bin/3scale_backend_worker", "run"],
            )
        ],
    )
    cron = deployment(
        target,
        "backend-cron",
        target.labels(options.app_label, COMPONENT, "cron"),
        options.cron_replicas,
        [
            container(
                "backend-cron",
                options.image,
                options.cron_resources,
                env=_redis_env(target),
                args=["backend-cron"],
            )
        ],
    )

    bodies = [
        *_secrets(options, target),
        config_map(target, ENVIRONMENT_CONFIG_MAP, labels, {"RACK_ENV": "production"}),
        listener,
        worker,
        cron,
        service(
            target,
            "backend-listener",
            target.labels(options.app_label, COMPONENT, "listener"),
            "backend-listener",
            [("http", 3000, 3000)],
        ),
        service(
            target,
            "backend-worker",
            target.labels(options.app_label, COMPONENT, "worker"),
            "backend-worker",
            [("metrics", 9421, 9421)],
        ),
        prometheus_rule(target, "backend-worker", labels, backend_rules(target.namespace)),
        service_monitor(target, "backend-worker", labels, options.app_label),
        grafana_dashboard(
            target,
            "backend",
            labels,
            "3scale backend",
            [
                ("Listener requests", 'sum(rate(apisonator_listener_total_requests[1m]))'),
                ("Worker jobs", 'sum(rate(apisonator_worker_job_count[1m]))'),
            ],
        ),
    ]
    return [target.desired(body) for body in bodies]
