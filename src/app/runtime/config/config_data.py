"""Operator settings as loaded from ``config.yaml``."""

from __future__ import annotations

import dataclasses
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.app.core.constants import ImageCatalog, OperatorConstants, ResourceRequirements


class ImageSettings(BaseModel):
    """Overrides for the release-pinned image catalog."""

    apicast: str | None = None
    backend: str | None = None
    system: str | None = None
    zync: str | None = None
    system_memcached: str | None = None


class LoggingSettings(BaseModel):
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = (
        "INFO"
    )
    serialize: bool = False


class OperatorSettings(BaseModel):
    """Top-level operator configuration.

    Attributes:
        release: Platform release the image catalog is pinned to
        namespace: Namespace used when a manifest does not name one
        requeue_after: Seconds suggested before the next pass when an
            optional kind was skipped; ``None`` disables the hint
        images: Image catalog overrides
        resource_profiles: Per-role request/limit overrides
        logging: Log sink settings
    """

    release: str = "2.8"
    namespace: str = "default"
    requeue_after: float | None = Field(default=30.0, ge=0)
    images: ImageSettings = Field(default_factory=ImageSettings)
    resource_profiles: dict[str, ResourceRequirements] = Field(default_factory=dict)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("release", mode="before")
    @classmethod
    def _release_as_text(cls, value: object) -> object:
        # YAML reads an unquoted 2.8 as a float
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


def build_constants(settings: OperatorSettings) -> OperatorConstants:
    """Build the static configuration table once, applying settings overrides.

    Raises:
        ValueError: If a resource profile override names an unknown role
    """
    defaults = OperatorConstants()
    overrides = settings.images.model_dump(exclude_none=True)
    images = dataclasses.replace(ImageCatalog(), **overrides)

    unknown = set(settings.resource_profiles) - set(defaults.resource_profiles)
    if unknown:
        raise ValueError(f"Unknown resource profile roles: {', '.join(sorted(unknown))}")
    profiles = {**defaults.resource_profiles, **settings.resource_profiles}

    return OperatorConstants(RELEASE=settings.release, images=images, resource_profiles=profiles)
