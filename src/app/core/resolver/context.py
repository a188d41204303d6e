from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from src.app.core.constants import OperatorConstants
from src.app.core.resolver.secret_source import SecretSource, generate_secret


@dataclass(frozen=True)
class ResolutionContext:
    """Inputs shared by every subcomponent resolver during one pass."""

    constants: OperatorConstants
    secrets: SecretSource
    generator: Callable[[int], str] = field(default=generate_secret)

    def generate(self) -> str:
        """Generate a password or token of the configured length."""
        return self.generator(self.constants.GENERATED_SECRET_LENGTH)

    def generated(self) -> Callable[[], str]:
        """Lazy default: only generates when the secret is absent."""
        return partial(self.generator, self.constants.GENERATED_SECRET_LENGTH)

    def resources(self, role: str, enabled: bool) -> dict[str, dict[str, str]]:
        return self.constants.resources_for(role, enabled)
