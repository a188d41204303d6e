"""Desired resources for the API gateway (staging and production)."""

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
    service,
)
from src.app.core.components.monitoring import (
    apicast_rules,
    grafana_dashboard,
    prometheus_rule,
    service_monitor,
)
from src.app.core.options import ApicastOptions
from src.app.core.reconciler.comparators import config_map_comparator
from src.app.core.reconciler.resources import DesiredResource

COMPONENT = "apicast"
ENVIRONMENT_CONFIG_MAP = "apicast-environment"
ENVIRONMENT_KEYS = ("APICAST_MANAGEMENT_API", "OPENSSL_VERIFY", "APICAST_RESPONSE_CODES")

# Only the gateway settings exposed on the instance are reconciled.
ENVIRONMENT_COMPARATOR = config_map_comparator(ENVIRONMENT_KEYS)


def _env(target: BuildTarget, environment: str) -> list[Body]:
    c = target.constants
    return [
        env_value("THREESCALE_DEPLOYMENT_ENV", environment),
        env_value("APICAST_CONFIGURATION_LOADER", "lazy" if environment == "staging" else "boot"),
        env_value("APICAST_CONFIGURATION_CACHE", "0" if environment == "staging" else "300"),
        env_from_secret(
            "BACKEND_ENDPOINT_OVERRIDE",
            c.BACKEND_LISTENER_SECRET,
            c.BACKEND_LISTENER_SERVICE_ENDPOINT_FIELD,
        ),
        *(env_from_config_map(key, ENVIRONMENT_CONFIG_MAP, key) for key in ENVIRONMENT_KEYS),
    ]


def _gateway(
    options: ApicastOptions,
    target: BuildTarget,
    environment: str,
    replicas: int | None,
    resources: dict[str, dict[str, str]],
) -> Body:
    name = f"apicast-{environment}"
    return deployment(
        target,
        name,
        target.labels(options.app_label, COMPONENT, environment),
        replicas,
        [
            container(
                name,
                options.image,
                resources,
                env=_env(target, environment),
                ports=[
                    {"name": "proxy", "containerPort": 8080, "protocol": "TCP"},
                    {"name": "management", "containerPort": 8090, "protocol": "TCP"},
                    {"name": "metrics", "containerPort": 9421, "protocol": "TCP"},
                ],
            )
        ],
    )


def build_apicast(options: ApicastOptions, target: BuildTarget) -> list[DesiredResource]:
    """Render both gateways, their services, the environment and monitoring."""
    labels = target.labels(options.app_label, COMPONENT)
    gateway_ports = [("gateway", 8080, 8080), ("management", 8090, 8090), ("metrics", 9421, 9421)]

    resources = [
        target.desired(body)
        for body in (
            _gateway(
                options, target, "staging", options.staging_replicas, options.staging_resources
            ),
            _gateway(
                options,
                target,
                "production",
                options.production_replicas,
                options.production_resources,
            ),
            service(
                target,
                "apicast-staging",
                target.labels(options.app_label, COMPONENT, "staging"),
                "apicast-staging",
                gateway_ports,
            ),
            service(
                target,
                "apicast-production",
                target.labels(options.app_label, COMPONENT, "production"),
                "apicast-production",
                gateway_ports,
            ),
        )
    ]
    resources.append(
        target.desired(
            config_map(
                target,
                ENVIRONMENT_CONFIG_MAP,
                labels,
                {
                    "APICAST_MANAGEMENT_API": options.management_api,
                    "OPENSSL_VERIFY": options.openssl_verify,
                    "APICAST_RESPONSE_CODES": options.response_codes,
                },
            ),
            comparator=ENVIRONMENT_COMPARATOR,
        )
    )
    resources += [
        target.desired(body)
        for body in (
            grafana_dashboard(
                target,
                "apicast",
                labels,
                "3scale apicast",
                [
                    ("Requests", "sum(rate(total_response_time_seconds_count[1m]))"),
                    ("5xx responses", 'sum(rate(apicast_status{status=~"5.."}[1m]))'),
                ],
            ),
            prometheus_rule(target, "apicast", labels, apicast_rules(target.namespace)),
            service_monitor(target, "apicast", labels, options.app_label),
        )
    ]
    return resources
