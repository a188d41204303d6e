"""Desired resources and per-resource reconcile outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.app.core.reconciler.comparators import Comparator


@dataclass(frozen=True)
class DesiredResource:
    """Fully rendered target definition for one child resource.

    ``comparator`` overrides the kind's entry in the comparator table for
    this resource only (e.g. a ConfigMap where only some keys are tracked).
    """

    body: dict[str, Any]
    owner: dict[str, Any]
    comparator: Comparator | None = field(default=None, compare=False)

    @property
    def api_version(self) -> str:
        return str(self.body["apiVersion"])

    @property
    def kind(self) -> str:
        return str(self.body["kind"])

    @property
    def name(self) -> str:
        return str(self.body["metadata"]["name"])

    @property
    def namespace(self) -> str:
        return str(self.body["metadata"].get("namespace", ""))

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


NOT_REGISTERED = "kind not registered"
FOREIGN_CONTROLLER = "owned by another controller"


class Outcome(StrEnum):
    NOOP = "NoOp"
    CREATED = "Created"
    UPDATED = "Updated"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class ReconcileOutcome:
    """What happened to one desired resource during a pass."""

    outcome: Outcome
    kind: str
    name: str
    namespace: str
    reason: str = ""
    subcomponent: str = ""

    @property
    def unregistered_kind(self) -> bool:
        return self.outcome is Outcome.SKIPPED and self.reason == NOT_REGISTERED

    @classmethod
    def of(
        cls, desired: DesiredResource, outcome: Outcome, reason: str = ""
    ) -> ReconcileOutcome:
        return cls(
            outcome=outcome,
            kind=desired.kind,
            name=desired.name,
            namespace=desired.namespace,
            reason=reason,
        )
