"""Error taxonomy for a reconciliation pass.

Every failure raised by the resolver, the reconciler or a cluster backend is
a ``ReconcileError``. The orchestrator stamps the subcomponent name on the
way out so the caller can log and act on ``(subcomponent, kind, name)``
without parsing messages. Nothing in the core retries; the trigger layer
decides when to run the next pass.
"""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for errors surfaced by a reconciliation pass."""

    def __init__(
        self,
        message: str,
        *,
        kind: str = "",
        name: str = "",
        subcomponent: str = "",
    ) -> None:
        self.message = message
        self.kind = kind
        self.name = name
        self.subcomponent = subcomponent
        super().__init__(message)

    @property
    def target(self) -> str:
        """Human readable identification of what failed."""
        parts = []
        if self.subcomponent:
            parts.append(f"[{self.subcomponent}]")
        if self.kind or self.name:
            parts.append(f"{self.kind}/{self.name}")
        return " ".join(parts)

    def __str__(self) -> str:
        target = self.target
        return f"{target}: {self.message}" if target else self.message


class OptionsValidationError(ReconcileError):
    """A resolved configuration is missing required fields."""

    def __init__(
        self, subcomponent: str, missing: list[str], *, kind: str = "", name: str = ""
    ) -> None:
        self.missing = missing
        super().__init__(
            f"missing required fields: {', '.join(missing)}",
            kind=kind,
            name=name,
            subcomponent=subcomponent,
        )


class MissingSecretFieldError(ReconcileError):
    """A secret exists but does not carry a field the operator needs."""

    def __init__(self, secret_name: str, field_name: str) -> None:
        self.secret_name = secret_name
        self.field_name = field_name
        super().__init__(
            f"secret exists but has no field '{field_name}'",
            kind="Secret",
            name=secret_name,
        )


class ConflictError(ReconcileError):
    """The object changed since it was read (resourceVersion mismatch)."""


class AlreadyExistsError(ReconcileError):
    """Another actor created the object between our read and our create."""


class TransportError(ReconcileError):
    """The cluster API could not be reached."""


class ClusterError(ReconcileError):
    """The cluster API rejected a request for any other reason."""
