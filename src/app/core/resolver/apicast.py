"""Resolve API gateway (apicast) options."""

from __future__ import annotations

from loguru import logger

from src.app.core.options import ApicastOptions
from src.app.core.resolver.context import ResolutionContext
from src.app.entities.apimanager import APIManager


def _flag(value: bool) -> str:
    return "true" if value else "false"


async def resolve_apicast(apimanager: APIManager, ctx: ResolutionContext) -> ApicastOptions:
    """Build validated ``ApicastOptions``. The gateway has no secret-backed fields."""
    spec = apimanager.spec
    enabled = spec.resource_requirements_enabled

    options = ApicastOptions(
        app_label=spec.app_label,
        tenant_name=spec.tenant_name,
        wildcard_domain=spec.wildcard_domain,
        image=spec.apicast.image or ctx.constants.images.apicast,
        management_api=spec.apicast.apicast_management_api,
        openssl_verify=_flag(spec.apicast.open_ssl_verify),
        response_codes=_flag(spec.apicast.include_response_codes),
        production_resources=ctx.resources("apicast-production", enabled),
        staging_resources=ctx.resources("apicast-staging", enabled),
        production_replicas=spec.apicast.production_spec.replicas,
        staging_replicas=spec.apicast.staging_spec.replicas,
    )
    options.validate()
    logger.debug(f"Resolved apicast options for {apimanager.namespace}/{apimanager.name}")
    return options
