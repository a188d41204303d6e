"""Body templates shared by every subcomponent builder.

Builders are pure: they turn resolved options into plain object dicts and
never touch the cluster. Each resulting ``DesiredResource`` carries the
owner reference of the instance being reconciled.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from src.app.core.constants import OperatorConstants, ResourceRequirements
from src.app.core.reconciler.comparators import Comparator
from src.app.core.reconciler.resources import DesiredResource
from src.app.entities.apimanager import APIManager

Body = dict[str, Any]


@dataclass(frozen=True)
class BuildTarget:
    """Where rendered resources go and who owns them."""

    namespace: str
    owner: dict[str, Any]
    constants: OperatorConstants

    @classmethod
    def for_instance(cls, apimanager: APIManager, constants: OperatorConstants) -> BuildTarget:
        return cls(
            namespace=apimanager.namespace,
            owner=apimanager.owner_reference(),
            constants=constants,
        )

    def labels(self, app_label: str | None, component: str, element: str = "") -> dict[str, str]:
        c = self.constants
        labels = {c.APP_LABEL_KEY: app_label or "", c.COMPONENT_LABEL_KEY: component}
        if element:
            labels[c.COMPONENT_ELEMENT_LABEL_KEY] = element
        return labels

    def metadata(self, name: str, labels: dict[str, str]) -> Body:
        return {"name": name, "namespace": self.namespace, "labels": dict(labels)}

    def desired(self, body: Body, comparator: Comparator | None = None) -> DesiredResource:
        return DesiredResource(body=body, owner=dict(self.owner), comparator=comparator)


def env_value(name: str, value: str) -> Body:
    return {"name": name, "value": value}


def env_from_secret(name: str, secret: str, key: str) -> Body:
    return {"name": name, "valueFrom": {"secretKeyRef": {"name": secret, "key": key}}}


def env_from_config_map(name: str, config_map: str, key: str) -> Body:
    return {"name": name, "valueFrom": {"configMapKeyRef": {"name": config_map, "key": key}}}


def container(
    name: str,
    image: str,
    resources: ResourceRequirements,
    env: list[Body] | None = None,
    ports: list[Body] | None = None,
    args: list[str] | None = None,
) -> Body:
    body: Body = {
        "name": name,
        "image": image,
        "imagePullPolicy": "IfNotPresent",
        "resources": copy.deepcopy(resources),
    }
    if args:
        body["args"] = list(args)
    if env:
        body["env"] = env
    if ports:
        body["ports"] = ports
    return body


def deployment(
    target: BuildTarget,
    name: str,
    labels: dict[str, str],
    replicas: int | None,
    containers: list[Body],
) -> Body:
    selector = {"deployment": name}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": target.metadata(name, labels),
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": dict(selector)},
            "strategy": {"type": "RollingUpdate"},
            "template": {
                "metadata": {"labels": {**labels, **selector}},
                "spec": {"containers": containers},
            },
        },
    }


def service(
    target: BuildTarget,
    name: str,
    labels: dict[str, str],
    selector_deployment: str,
    ports: list[tuple[str, int, int]],
) -> Body:
    """Render a ClusterIP Service; ``ports`` holds ``(name, port, targetPort)``."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": target.metadata(name, labels),
        "spec": {
            "ports": [
                {"name": port_name, "protocol": "TCP", "port": port, "targetPort": target_port}
                for port_name, port, target_port in ports
            ],
            "selector": {"deployment": selector_deployment},
        },
    }


def config_map(target: BuildTarget, name: str, labels: dict[str, str], data: dict[str, str]) -> Body:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": target.metadata(name, labels),
        "data": dict(data),
    }


def secret(target: BuildTarget, name: str, labels: dict[str, str], data: dict[str, str]) -> Body:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": target.metadata(name, labels),
        "stringData": dict(data),
    }
