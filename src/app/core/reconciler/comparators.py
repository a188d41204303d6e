"""Per-kind comparison strategies.

A ``Comparator`` is a pair of functions over plain object dicts:

* ``needs_update(desired, existing)`` inspects only the fields the operator
  is responsible for for that kind and reports whether they diverge.
* ``apply_tracked_fields(desired, existing)`` copies exactly those fields
  from desired onto the (already fetched) live object, in place.

Anything else on the live object (defaults filled in by the API server,
fields owned by other controllers) is neither compared nor written.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple

Body = dict[str, Any]


class Comparator(NamedTuple):
    needs_update: Callable[[Body, Body], bool]
    apply_tracked_fields: Callable[[Body, Body], None]


# -- quantities --------------------------------------------------------------

_BINARY_SUFFIXES = {
    "Ki": Decimal(2**10),
    "Mi": Decimal(2**20),
    "Gi": Decimal(2**30),
    "Ti": Decimal(2**40),
    "Pi": Decimal(2**50),
    "Ei": Decimal(2**60),
}
_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}
_QUANTITY = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+))([eE][+-]?\d+|[KMGTPE]i|[numkMGTPE]?)$")


def parse_quantity(value: str | int | float) -> Decimal:
    """Parse a Kubernetes resource quantity (``500m``, ``1``, ``64Mi``...).

    Raises:
        ValueError: If the value is not a valid quantity
    """
    match = _QUANTITY.match(str(value).strip())
    if not match:
        raise ValueError(f"invalid quantity: {value!r}")
    number, suffix = match.groups()
    try:
        if suffix[:1] in ("e", "E") and len(suffix) > 1:
            return Decimal(number + suffix)
        multiplier = _BINARY_SUFFIXES.get(suffix) or _DECIMAL_SUFFIXES[suffix]
        return Decimal(number) * multiplier
    except InvalidOperation as e:
        raise ValueError(f"invalid quantity: {value!r}") from e


def _normalize_quantity(value: Any) -> Any:
    try:
        return parse_quantity(value)
    except ValueError:
        return value


def _normalize_resources(resources: Mapping[str, Any] | None) -> dict[str, dict[str, Any]]:
    return {
        section: {name: _normalize_quantity(q) for name, q in values.items()}
        for section, values in (resources or {}).items()
        if values
    }


def resources_equal(desired: Mapping[str, Any] | None, existing: Mapping[str, Any] | None) -> bool:
    """Semantic equality of two container ``resources`` blocks (``1`` == ``1000m``)."""
    return _normalize_resources(desired) == _normalize_resources(existing)


# -- create-only -------------------------------------------------------------


def _never(desired: Body, existing: Body) -> bool:
    return False


def _untouched(desired: Body, existing: Body) -> None:
    return None


CREATE_ONLY = Comparator(_never, _untouched)


# -- Deployment --------------------------------------------------------------


def _containers(body: Body) -> dict[str, Body]:
    pod_spec = body.get("spec", {}).get("template", {}).get("spec", {})
    return {container["name"]: container for container in pod_spec.get("containers") or []}


def deployment_needs_update(desired: Body, existing: Body) -> bool:
    desired_spec = desired.get("spec", {})
    if "replicas" in desired_spec and desired_spec["replicas"] != existing.get(
        "spec", {}
    ).get("replicas"):
        return True

    live = _containers(existing)
    for name, container in _containers(desired).items():
        if name not in live:
            continue
        if container.get("image") != live[name].get("image"):
            return True
        if not resources_equal(container.get("resources"), live[name].get("resources")):
            return True
    return False


def deployment_apply_tracked_fields(desired: Body, existing: Body) -> None:
    desired_spec = desired.get("spec", {})
    if "replicas" in desired_spec:
        existing.setdefault("spec", {})["replicas"] = desired_spec["replicas"]

    live = _containers(existing)
    for name, container in _containers(desired).items():
        if name in live:
            live[name]["image"] = container.get("image")
            live[name]["resources"] = copy.deepcopy(container.get("resources") or {})


DEPLOYMENT = Comparator(deployment_needs_update, deployment_apply_tracked_fields)


# -- ConfigMap ---------------------------------------------------------------


def config_map_comparator(keys: Iterable[str] | None = None) -> Comparator:
    """Comparator over ConfigMap ``data`` entries.

    Args:
        keys: Entries to track. ``None`` tracks every key the desired
            ConfigMap renders. With an explicit list, a tracked key missing
            from the desired data is removed from the live object.
    """
    fixed = tuple(keys) if keys is not None else None

    def tracked(desired: Body) -> tuple[str, ...]:
        return fixed if fixed is not None else tuple(desired.get("data") or {})

    def needs_update(desired: Body, existing: Body) -> bool:
        want = desired.get("data") or {}
        have = existing.get("data") or {}
        return any(want.get(key) != have.get(key) for key in tracked(desired))

    def apply_tracked_fields(desired: Body, existing: Body) -> None:
        want = desired.get("data") or {}
        have = existing.get("data") or {}
        for key in tracked(desired):
            if key in want:
                have[key] = want[key]
            else:
                have.pop(key, None)
        existing["data"] = have

    return Comparator(needs_update, apply_tracked_fields)


CONFIG_MAP = config_map_comparator()


DEFAULT_COMPARATORS: dict[str, Comparator] = {
    "Deployment": DEPLOYMENT,
    "ConfigMap": CONFIG_MAP,
    "Service": CREATE_ONLY,
    "Secret": CREATE_ONLY,
    "PrometheusRule": CREATE_ONLY,
    "ServiceMonitor": CREATE_ONLY,
    "GrafanaDashboard": CREATE_ONLY,
}


def comparator_for(kind: str, table: Mapping[str, Comparator] | None = None) -> Comparator:
    """Look up the strategy for a kind; unknown kinds are create-only."""
    return (table if table is not None else DEFAULT_COMPARATORS).get(kind, CREATE_ONLY)
