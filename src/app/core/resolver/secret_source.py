"""Secret-backed option lookup.

A secret-backed option is read from ``(secret name, field name)``. When the
secret does not exist the computed default is used; when it exists but lacks
the field, resolution fails. The root specification never overrides these
values.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from loguru import logger

from src.app.core.errors import MissingSecretFieldError
from src.infra.k8s.store import SecretStore

Default = str | Callable[[], str]

_ALPHABET = string.ascii_letters + string.digits


def generate_secret(length: int) -> str:
    """Random alphanumeric value for generated passwords and tokens."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def templated(template: str, **values: str | None) -> str:
    """Fill ``template`` from ``values``; empty if any value is unset.

    An empty result lets ``validate()`` report the missing input instead of
    producing something like ``https://backend-None.None``.
    """
    if any(not value for value in values.values()):
        return ""
    return template.format(**values)


@dataclass(frozen=True)
class SecretBackedField:
    """Where an option lives and what to use when its secret is absent."""

    option: str
    secret: str
    key: str
    default: Default


class SecretSource:
    """Per-pass view of a namespace's secrets.

    Each secret is read at most once per instance; a new instance is created
    for every pass so nothing is shared across passes or instances.
    """

    def __init__(self, store: SecretStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace
        self._cache: dict[str, dict[str, str] | None] = {}

    async def _read(self, secret_name: str) -> dict[str, str] | None:
        if secret_name not in self._cache:
            values = await self._store.read(secret_name, self._namespace)
            if values is None:
                logger.debug(
                    f"Secret {self._namespace}/{secret_name} not found, using defaults"
                )
            self._cache[secret_name] = values
        return self._cache[secret_name]

    async def field_value(self, secret_name: str, field_name: str, default: Default) -> str:
        """Return the stored value, or the default when the secret is absent.

        Raises:
            MissingSecretFieldError: If the secret exists without ``field_name``
        """
        values = await self._read(secret_name)
        if values is None:
            return default() if callable(default) else default
        if field_name not in values:
            raise MissingSecretFieldError(secret_name, field_name)
        return values[field_name]

    async def resolve(self, cases: Iterable[SecretBackedField]) -> dict[str, str]:
        """Resolve several secret-backed options, keyed by option name."""
        return {
            case.option: await self.field_value(case.secret, case.key, case.default)
            for case in cases
        }
