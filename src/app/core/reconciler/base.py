"""Convergence of a single desired resource against the live cluster.

Per resource the reconciler walks::

    START -> (CHECK_KIND_REGISTERED, optional kinds only) -> FETCH_EXISTING
          -> not found: CREATE
          -> found:     COMPUTE_DIFF -> PATCH | no change

Errors are never retried here. The first failure propagates to the caller,
which aborts the rest of the pass; resources already applied stay applied.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from src.app.core.constants import OperatorConstants
from src.app.core.errors import ReconcileError
from src.app.core.reconciler.comparators import Comparator, comparator_for
from src.app.core.reconciler.metadata import (
    ensure_object_meta,
    ensure_owner_reference,
    foreign_controller,
)
from src.app.core.reconciler.resources import (
    FOREIGN_CONTROLLER,
    NOT_REGISTERED,
    DesiredResource,
    Outcome,
    ReconcileOutcome,
)
from src.infra.k8s.store import ClusterStore


class ResourceReconciler:
    """Create-or-patch engine shared by every kind.

    Attributes:
        store: Cluster access
        constants: Static configuration (optional kinds)
        comparators: Strategy table keyed by kind
    """

    def __init__(
        self,
        store: ClusterStore,
        constants: OperatorConstants,
        comparators: Mapping[str, Comparator] | None = None,
    ) -> None:
        self.store = store
        self.constants = constants
        self.comparators = comparators

    async def reconcile(self, desired: DesiredResource) -> ReconcileOutcome:
        """Converge one resource and report what was done."""
        if self.constants.is_optional_kind(desired.api_version, desired.kind):
            registered = await self.store.is_registered(desired.api_version, desired.kind)
            if not registered:
                logger.info(
                    f"Skipping {desired}: kind {desired.kind} ({desired.api_version}) "
                    "is not registered; install the add-on to manage it"
                )
                return ReconcileOutcome.of(desired, Outcome.SKIPPED, NOT_REGISTERED)

        existing = await self.store.get(
            desired.api_version, desired.kind, desired.name, desired.namespace
        )
        if existing is None:
            return await self._create(desired)
        return await self._converge(desired, existing)

    async def reconcile_all(
        self, resources: Iterable[DesiredResource]
    ) -> list[ReconcileOutcome]:
        """Reconcile resources in order, stopping at the first error."""
        outcomes = []
        for desired in resources:
            try:
                outcomes.append(await self.reconcile(desired))
            except ReconcileError as e:
                e.kind = e.kind or desired.kind
                e.name = e.name or desired.name
                logger.error(f"Error reconciling {desired}: {e.message}")
                raise
        return outcomes

    async def _create(self, desired: DesiredResource) -> ReconcileOutcome:
        body = copy.deepcopy(desired.body)
        ensure_owner_reference(body, desired.owner)
        await self.store.create(body)
        logger.info(f"Created {desired}")
        return ReconcileOutcome.of(desired, Outcome.CREATED)

    async def _converge(
        self, desired: DesiredResource, existing: dict[str, Any]
    ) -> ReconcileOutcome:
        foreign = foreign_controller(existing, desired.owner)
        if foreign is not None:
            logger.warning(
                f"Not adopting {desired}: controlled by "
                f"{foreign.get('kind')}/{foreign.get('name')}"
            )
            return ReconcileOutcome.of(desired, Outcome.SKIPPED, FOREIGN_CONTROLLER)

        token = existing.get("metadata", {}).get("resourceVersion")
        live = copy.deepcopy(existing)

        changed = ensure_object_meta(live, desired.body)
        changed = ensure_owner_reference(live, desired.owner) or changed

        comparator = desired.comparator or comparator_for(desired.kind, self.comparators)
        if comparator.needs_update(desired.body, live):
            comparator.apply_tracked_fields(desired.body, live)
            changed = True

        if not changed:
            logger.debug(f"{desired} is up to date")
            return ReconcileOutcome.of(desired, Outcome.NOOP)

        await self.store.update(live, token)
        logger.info(f"Updated {desired}")
        return ReconcileOutcome.of(desired, Outcome.UPDATED)
