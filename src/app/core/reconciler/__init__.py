"""Reconciler core: converge desired child resources onto the cluster."""

from .base import ResourceReconciler
from .comparators import (
    CONFIG_MAP,
    CREATE_ONLY,
    DEFAULT_COMPARATORS,
    DEPLOYMENT,
    Comparator,
    comparator_for,
    config_map_comparator,
    parse_quantity,
    resources_equal,
)
from .metadata import ensure_object_meta, ensure_owner_reference, foreign_controller
from .resources import (
    FOREIGN_CONTROLLER,
    NOT_REGISTERED,
    DesiredResource,
    Outcome,
    ReconcileOutcome,
)

__all__ = [
    "ResourceReconciler",
    "Comparator",
    "CONFIG_MAP",
    "CREATE_ONLY",
    "DEPLOYMENT",
    "DEFAULT_COMPARATORS",
    "comparator_for",
    "config_map_comparator",
    "parse_quantity",
    "resources_equal",
    "ensure_object_meta",
    "ensure_owner_reference",
    "foreign_controller",
    "FOREIGN_CONTROLLER",
    "NOT_REGISTERED",
    "DesiredResource",
    "Outcome",
    "ReconcileOutcome",
]
