"""Orchestrator: one reconciliation pass for one API manager instance.

For every subcomponent, in a fixed order, the pass resolves options, renders
the desired resources and hands them to the reconciler core. The first error
aborts the pass and is re-raised with the subcomponent name attached;
resources applied earlier stay applied and the next pass converges the rest.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from loguru import logger

from src.app.core.components import (
    BuildTarget,
    build_apicast,
    build_backend,
    build_memcached,
    build_system,
    build_zync,
)
from src.app.core.constants import OperatorConstants
from src.app.core.errors import OptionsValidationError, ReconcileError
from src.app.core.reconciler import (
    Comparator,
    DesiredResource,
    Outcome,
    ReconcileOutcome,
    ResourceReconciler,
)
from src.app.core.resolver import (
    ResolutionContext,
    SecretSource,
    generate_secret,
    resolve_apicast,
    resolve_backend,
    resolve_memcached,
    resolve_system,
    resolve_zync,
)
from src.app.entities.apimanager import APIManager
from src.infra.k8s.store import ClusterStore, SecretStore


class Subcomponent(NamedTuple):
    name: str
    resolve: Callable[[APIManager, ResolutionContext], Awaitable[Any]]
    build: Callable[[Any, BuildTarget], list[DesiredResource]]


SUBCOMPONENTS: tuple[Subcomponent, ...] = (
    Subcomponent("backend", resolve_backend, build_backend),
    Subcomponent("memcached", resolve_memcached, build_memcached),
    Subcomponent("system", resolve_system, build_system),
    Subcomponent("zync", resolve_zync, build_zync),
    Subcomponent("apicast", resolve_apicast, build_apicast),
)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a completed pass.

    Attributes:
        requeue_after: Suggested delay in seconds before the next pass, or
            ``None``. Set when an optional kind was skipped so the add-on is
            picked up once installed.
        outcomes: Per-resource outcomes in apply order
    """

    requeue_after: float | None
    outcomes: list[ReconcileOutcome] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for o in self.outcomes if o.outcome is outcome)


class APIManagerReconciler:
    """Drives resolve -> build -> reconcile for every subcomponent."""

    def __init__(
        self,
        cluster: ClusterStore,
        secrets: SecretStore,
        constants: OperatorConstants,
        *,
        requeue_after: float | None = 30.0,
        generator: Callable[[int], str] = generate_secret,
        comparators: Mapping[str, Comparator] | None = None,
        subcomponents: tuple[Subcomponent, ...] = SUBCOMPONENTS,
    ) -> None:
        self.cluster = cluster
        self.secrets = secrets
        self.constants = constants
        self.requeue_after = requeue_after
        self.generator = generator
        self.subcomponents = subcomponents
        self.reconciler = ResourceReconciler(cluster, constants, comparators)

    def _context(self, apimanager: APIManager) -> ResolutionContext:
        # Fresh per pass: secrets are read once per pass and never shared.
        return ResolutionContext(
            constants=self.constants,
            secrets=SecretSource(self.secrets, apimanager.namespace),
            generator=self.generator,
        )

    async def resolve(self, apimanager: APIManager) -> dict[str, Any]:
        """Resolve and validate every subcomponent without touching the cluster."""
        ctx = self._context(apimanager)
        resolved = {}
        for sub in self.subcomponents:
            try:
                resolved[sub.name] = await sub.resolve(apimanager, ctx)
            except ReconcileError as e:
                e.subcomponent = e.subcomponent or sub.name
                raise
        return resolved

    async def render(self, apimanager: APIManager) -> list[DesiredResource]:
        """Resolve and build every desired resource without applying anything."""
        target = BuildTarget.for_instance(apimanager, self.constants)
        resolved = await self.resolve(apimanager)
        return [
            desired
            for sub in self.subcomponents
            for desired in sub.build(resolved[sub.name], target)
        ]

    async def reconcile(self, apimanager: APIManager) -> ReconcileResult:
        """Run one full pass.

        Raises:
            OptionsValidationError: If the instance has no ``metadata.uid``;
                nothing is read or written in that case
            ReconcileError: The first failure, with ``subcomponent`` set
        """
        instance = f"{apimanager.namespace}/{apimanager.name}"
        if not apimanager.metadata.uid:
            raise OptionsValidationError(
                "", ["metadata.uid"], kind=apimanager.kind, name=apimanager.name
            )
        logger.info(f"Reconciling APIManager {instance}")

        ctx = self._context(apimanager)
        target = BuildTarget.for_instance(apimanager, self.constants)
        outcomes: list[ReconcileOutcome] = []

        for sub in self.subcomponents:
            try:
                options = await sub.resolve(apimanager, ctx)
                desired = sub.build(options, target)
                applied = await self.reconciler.reconcile_all(desired)
            except ReconcileError as e:
                e.subcomponent = e.subcomponent or sub.name
                logger.error(f"Reconciliation of {instance} aborted: {e}")
                raise
            outcomes += [dataclasses.replace(o, subcomponent=sub.name) for o in applied]
            logger.debug(f"{instance}: {sub.name} reconciled ({len(applied)} resources)")

        requeue = self.requeue_after if any(o.unregistered_kind for o in outcomes) else None
        result = ReconcileResult(requeue_after=requeue, outcomes=outcomes)
        logger.info(
            f"Reconciled APIManager {instance}: "
            f"{result.count(Outcome.CREATED)} created, "
            f"{result.count(Outcome.UPDATED)} updated, "
            f"{result.count(Outcome.SKIPPED)} skipped"
        )
        return result
