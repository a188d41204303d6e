from __future__ import annotations

from src.app.core.options import MemcachedOptions
from src.app.core.resolver.context import ResolutionContext
from src.app.entities.apimanager import APIManager


async def resolve_memcached(
    apimanager: APIManager, ctx: ResolutionContext
) -> MemcachedOptions:
    """Resolve the caching layer: label, image and footprint only."""
    spec = apimanager.spec
    options = MemcachedOptions(
        app_label=spec.app_label,
        image=spec.system.memcached_image or ctx.constants.images.system_memcached,
        resources=ctx.resources("system-memcache", spec.resource_requirements_enabled),
    )
    options.validate()
    return options
