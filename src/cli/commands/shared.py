"""Shared utilities for CLI commands: manifest loading and secret masking."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.app.entities.apimanager import APIManager
from src.infra.k8s import get_namespace

MASK = "******"
_SENSITIVE_MARKERS = ("password", "token", "secret", "url")


def load_manifest(path: Path, default_namespace: str) -> APIManager:
    """Load an APIManager manifest from a YAML file.

    A manifest without ``metadata.namespace`` lands in the watch namespace
    (``WATCH_NAMESPACE``) or ``default_namespace``.

    Raises:
        ValueError: If the file is not a valid APIManager manifest
    """
    try:
        manifest = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing {path}: {e}") from e
    if not isinstance(manifest, dict):
        raise ValueError(f"{path} does not contain an APIManager manifest")

    metadata = manifest.get("metadata") or {}
    metadata.setdefault("namespace", get_namespace(default_namespace))
    manifest["metadata"] = metadata
    try:
        return APIManager.from_manifest(manifest)
    except ValidationError as e:
        raise ValueError(f"Invalid APIManager manifest: {e}") from e


def load_objects(path: Path) -> list[dict[str, Any]]:
    """Load live objects (multi-document YAML) used to seed a dry run."""
    try:
        return [doc for doc in yaml.safe_load_all(path.read_text()) if doc]
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing {path}: {e}") from e


def is_sensitive(field_name: str) -> bool:
    name = field_name.lower()
    return any(marker in name for marker in _SENSITIVE_MARKERS)


def mask_options(values: dict[str, Any]) -> dict[str, Any]:
    """Replace secret-backed option values before printing."""
    return {
        key: MASK if value and isinstance(value, str) and is_sensitive(key) else value
        for key, value in values.items()
    }


def mask_body(body: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a resource body with Secret payloads masked."""
    if body.get("kind") != "Secret":
        return body
    masked = dict(body)
    for section in ("data", "stringData"):
        if section in masked:
            masked[section] = {key: MASK for key in masked[section]}
    return masked
