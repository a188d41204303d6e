"""Metadata reconciliation shared by every kind.

Labels and annotations are merged additively: keys set by other actors are
never removed, and keys dropped from a later desired template stay on the
live object. Owner references are only ever appended.
"""

from __future__ import annotations

from typing import Any


def merge_string_map(existing: dict[str, Any], desired: dict[str, Any] | None) -> bool:
    """Copy desired keys into ``existing``. Returns True if anything changed."""
    changed = False
    for key, value in (desired or {}).items():
        if existing.get(key) != value:
            existing[key] = value
            changed = True
    return changed


def ensure_object_meta(existing: dict[str, Any], desired: dict[str, Any]) -> bool:
    """Merge desired labels and annotations into a live object in place."""
    existing_meta = existing.setdefault("metadata", {})
    desired_meta = desired.get("metadata", {})
    changed = False
    for section in ("labels", "annotations"):
        wanted = desired_meta.get(section)
        if not wanted:
            continue
        current = existing_meta.get(section)
        if current is None:
            current = existing_meta[section] = {}
        changed = merge_string_map(current, wanted) or changed
    return changed


def _same_owner(reference: dict[str, Any], owner: dict[str, Any]) -> bool:
    if owner.get("uid") and reference.get("uid"):
        return bool(reference["uid"] == owner["uid"])
    return (
        reference.get("apiVersion") == owner.get("apiVersion")
        and reference.get("kind") == owner.get("kind")
        and reference.get("name") == owner.get("name")
    )


def foreign_controller(existing: dict[str, Any], owner: dict[str, Any]) -> dict[str, Any] | None:
    """Return the controller reference of another owner, if there is one."""
    for reference in existing.get("metadata", {}).get("ownerReferences") or []:
        if reference.get("controller") and not _same_owner(reference, owner):
            return dict(reference)
    return None


def ensure_owner_reference(existing: dict[str, Any], owner: dict[str, Any]) -> bool:
    """Append ``owner`` to the live object's owner references if absent.

    Other references are left as they are.
    """
    metadata = existing.setdefault("metadata", {})
    references = metadata.get("ownerReferences") or []
    if any(_same_owner(reference, owner) for reference in references):
        return False
    metadata["ownerReferences"] = [*references, dict(owner)]
    return True
