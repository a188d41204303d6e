"""Observability companions: alert rules, scrape endpoints and dashboards.

These bodies are always rendered. Whether they are applied depends on the
monitoring add-ons being installed, which the reconciler checks at apply
time.
"""

from __future__ import annotations

import json
from typing import Any

from src.app.core.components.common import Body, BuildTarget

PROMETHEUS_API_VERSION = "monitoring.coreos.com/v1"
GRAFANA_API_VERSION = "integreatly.org/v1alpha1"


def _monitoring_labels(target: BuildTarget, labels: dict[str, str]) -> dict[str, str]:
    return {**labels, "monitoring-key": target.constants.MONITORING_KEY}


def _alert(alert: str, expr: str, severity: str, summary: str) -> Body:
    return {
        "alert": alert,
        "annotations": {
            "summary": f"{{{{$labels.container_name}}}} replica controller on "
            f"{{{{$labels.namespace}}}}: {summary}",
            "description": f"{{{{$labels.container_name}}}} replica controller on "
            f"{{{{$labels.namespace}}}} project: {summary}",
        },
        "expr": expr,
        "for": "2m",
        "labels": {"severity": severity},
    }


def _running_pods_expr(container: str, namespace: str, minimum: int) -> str:
    return (
        "label_replace(label_replace(label_replace(sum(clamp_max("
        f'container_memory_usage_bytes{{container_name="{container}",namespace="{namespace}"}},1)),'
        ' "cluster", "prod", "", ""), "container_name", '
        f'"{container}", "", ""), "namespace", "{namespace}", "", "") < {minimum}'
    )


def prometheus_rule(
    target: BuildTarget, name: str, labels: dict[str, str], rules: list[Body]
) -> Body:
    return {
        "apiVersion": PROMETHEUS_API_VERSION,
        "kind": "PrometheusRule",
        "metadata": target.metadata(
            name,
            {
                **_monitoring_labels(target, labels),
                "prometheus": "application-monitoring",
                "role": "alert-rules",
            },
        ),
        "spec": {"groups": [{"name": name, "rules": rules}]},
    }


def apicast_rules(namespace: str) -> list[Body]:
    """Alert rules for the gateway, scoped to the instance namespace."""
    return [
        _alert(
            "ApiCastProdRunningPods",
            _running_pods_expr("apicast", namespace, 2),
            "critical",
            "Less than 2 running pods",
        ),
        _alert(
            "ApiCastErrors",
            f'sum(increase(nginx_error_log{{kubernetes_namespace="{namespace}",'
            'level=~"(error|crit|alert|emerg)"}[5m])) '
            "by (kubernetes_name,cluster,kubernetes_namespace) > 100",
            "critical",
            "Has more than 5 errors in the last 5 minutes",
        ),
        _alert(
            "ApiCast5xx",
            f'sum(increase(apicast_status{{kubernetes_namespace="{namespace}",'
            'status=~"5\\\\d{2}"}[5m])) '
            "by (kubernetes_name,cluster,kubernetes_namespace) > 10",
            "warning",
            "Has more than 10 Http 5XX in the last 5 minutes",
        ),
    ]


def backend_rules(namespace: str) -> list[Body]:
    return [
        _alert(
            "BackendListenerRunningPods",
            _running_pods_expr("backend-listener", namespace, 1),
            "critical",
            "Less than 1 running pod",
        ),
        _alert(
            "BackendWorkerRunningPods",
            _running_pods_expr("backend-worker", namespace, 1),
            "critical",
            "Less than 1 running pod",
        ),
    ]


def service_monitor(
    target: BuildTarget, name: str, labels: dict[str, str], app_label: str | None
) -> Body:
    return {
        "apiVersion": PROMETHEUS_API_VERSION,
        "kind": "ServiceMonitor",
        "metadata": target.metadata(name, _monitoring_labels(target, labels)),
        "spec": {
            "endpoints": [{"port": "metrics"}],
            "selector": {
                "matchLabels": {
                    target.constants.APP_LABEL_KEY: app_label or "",
                    target.constants.COMPONENT_LABEL_KEY: labels[
                        target.constants.COMPONENT_LABEL_KEY
                    ],
                }
            },
        },
    }


def _dashboard_json(title: str, namespace: str, panels: list[tuple[str, str]]) -> str:
    dashboard: dict[str, Any] = {
        "title": title,
        "tags": ["3scale", namespace],
        "schemaVersion": 16,
        "panels": [
            {
                "id": index,
                "title": panel_title,
                "type": "graph",
                "targets": [{"expr": expr, "refId": "A"}],
            }
            for index, (panel_title, expr) in enumerate(panels, start=1)
        ],
    }
    return json.dumps(dashboard, indent=2, sort_keys=True)


def grafana_dashboard(
    target: BuildTarget,
    name: str,
    labels: dict[str, str],
    title: str,
    panels: list[tuple[str, str]],
) -> Body:
    return {
        "apiVersion": GRAFANA_API_VERSION,
        "kind": "GrafanaDashboard",
        "metadata": target.metadata(name, _monitoring_labels(target, labels)),
        "spec": {
            "name": f"{name}.json",
            "json": _dashboard_json(title, target.namespace, panels),
        },
    }
