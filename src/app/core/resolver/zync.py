"""Resolve sync service (zync) options."""

from __future__ import annotations

from src.app.core.options import ZyncOptions
from src.app.core.resolver.context import ResolutionContext
from src.app.core.resolver.secret_source import SecretBackedField, templated
from src.app.entities.apimanager import APIManager


async def resolve_zync(apimanager: APIManager, ctx: ResolutionContext) -> ZyncOptions:
    """Build validated ``ZyncOptions``.

    The database URL default embeds the database password, so the password
    is resolved first and the URL second.
    """
    c = ctx.constants
    spec = apimanager.spec
    enabled = spec.resource_requirements_enabled

    credentials = await ctx.secrets.resolve(
        [
            SecretBackedField(
                "authentication_token",
                c.ZYNC_SECRET,
                c.ZYNC_AUTHENTICATION_TOKEN_FIELD,
                ctx.generated(),
            ),
            SecretBackedField(
                "secret_key_base", c.ZYNC_SECRET, c.ZYNC_SECRET_KEY_BASE_FIELD, ctx.generated()
            ),
            SecretBackedField(
                "database_password",
                c.ZYNC_SECRET,
                c.ZYNC_DATABASE_PASSWORD_FIELD,
                ctx.generated(),
            ),
        ]
    )
    database_url = await ctx.secrets.field_value(
        c.ZYNC_SECRET,
        c.ZYNC_DATABASE_URL_FIELD,
        templated(c.DEFAULT_ZYNC_DATABASE_URL, password=credentials["database_password"]),
    )

    options = ZyncOptions(
        app_label=spec.app_label,
        image=spec.zync.image or c.images.zync,
        **credentials,
        database_url=database_url,
        app_resources=ctx.resources("zync", enabled),
        que_resources=ctx.resources("zync-que", enabled),
        app_replicas=spec.zync.app_spec.replicas,
        que_replicas=spec.zync.que_spec.replicas,
    )
    options.validate()
    return options
