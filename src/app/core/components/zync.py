"""Desired resources for the sync service (zync and zync-que)."""

from __future__ import annotations

from src.app.core.components.common import (
    Body,
    BuildTarget,
    container,
    deployment,
    env_from_secret,
    env_value,
    secret,
    service,
)
from src.app.core.options import ZyncOptions
from src.app.core.reconciler.resources import DesiredResource

COMPONENT = "zync"


def _env(target: BuildTarget) -> list[Body]:
    c = target.constants
    return [
        env_value("RAILS_LOG_TO_STDOUT", "true"),
        env_value("RAILS_ENV", "production"),
        env_from_secret("DATABASE_URL", c.ZYNC_SECRET, c.ZYNC_DATABASE_URL_FIELD),
        env_from_secret("SECRET_KEY_BASE", c.ZYNC_SECRET, c.ZYNC_SECRET_KEY_BASE_FIELD),
        env_from_secret(
            "ZYNC_AUTHENTICATION_TOKEN", c.ZYNC_SECRET, c.ZYNC_AUTHENTICATION_TOKEN_FIELD
        ),
    ]


def build_zync(options: ZyncOptions, target: BuildTarget) -> list[DesiredResource]:
    """Render the zync secret, both workloads and the API service."""
    c = target.constants
    labels = target.labels(options.app_label, COMPONENT)
    app_labels = target.labels(options.app_label, COMPONENT, "zync")

    bodies = [
        secret(
            target,
            c.ZYNC_SECRET,
            labels,
            {
                c.ZYNC_AUTHENTICATION_TOKEN_FIELD: options.authentication_token,
                c.ZYNC_SECRET_KEY_BASE_FIELD: options.secret_key_base,
                c.ZYNC_DATABASE_PASSWORD_FIELD: options.database_password,
                c.ZYNC_DATABASE_URL_FIELD: options.database_url,
            },
        ),
        deployment(
            target,
            "zync",
            app_labels,
            options.app_replicas,
            [
                container(
                    "zync",
                    options.image,
                    options.app_resources,
                    env=_env(target),
                    ports=[{"name": "http", "containerPort": 8080, "protocol": "TCP"}],
                )
            ],
        ),
        deployment(
            target,
            "zync-que",
            target.labels(options.app_label, COMPONENT, "zync-que"),
            options.que_replicas,
            [
                container(
                    "que",
                    options.image,
                    options.que_resources,
                    env=_env(target),
                    args=["/usr/bin/bash", "-c", "bundle exec rake 'que[--worker-count 10]'"],
                )
            ],
        ),
        service(target, "zync", app_labels, "zync", [("8080-tcp", 8080, 8080)]),
    ]
    return [target.desired(body) for body in bodies]
