"""Desired resources for the caching layer used by system."""

from __future__ import annotations

from src.app.core.components.common import BuildTarget, container, deployment, service
from src.app.core.options import MemcachedOptions
from src.app.core.reconciler.resources import DesiredResource

COMPONENT = "system"
NAME = "system-memcache"


def build_memcached(options: MemcachedOptions, target: BuildTarget) -> list[DesiredResource]:
    labels = target.labels(options.app_label, COMPONENT, "memcache")
    bodies = [
        deployment(
            target,
            NAME,
            labels,
            1,
            [
                container(
                    "memcache",
                    options.image,
                    options.resources,
                    ports=[{"name": "memcache", "containerPort": 11211, "protocol": "TCP"}],
                    args=["memcached", "-m", "64"],
                )
            ],
        ),
        service(target, NAME, labels, NAME, [("memcache", 11211, 11211)]),
    ]
    return [target.desired(body) for body in bodies]
