"""Utility functions for the Kubernetes infrastructure layer."""

from __future__ import annotations

import asyncio
import base64
import concurrent.futures
import copy
from collections.abc import Coroutine
from typing import Any


def run_sync[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from synchronous code.

    Used by the CLI to drive the async stores and reconciler.

    Args:
        coro: The coroutine to execute

    Returns:
        The result of the coroutine
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Already inside a loop (e.g. called from a notebook): run on a fresh
    # loop in a worker thread instead of blocking the current one.
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def secret_values(body: dict[str, Any]) -> dict[str, str]:
    """Decode the fields of a Secret object.

    ``data`` is base64 encoded; ``stringData`` (write-only on a real API
    server, but present on objects that were never round-tripped) wins on
    key collisions, matching API server semantics.
    """
    values = {
        key: base64.b64decode(raw).decode("utf-8")
        for key, raw in (body.get("data") or {}).items()
    }
    values.update(body.get("stringData") or {})
    return values



def merge_patch(current: dict[str, Any], desired: dict[str, Any]) -> dict[str, Any]:
    """Build the JSON merge patch (RFC 7386) that turns ``current`` into ``desired``.

    Keys present only in ``current`` are sent as ``None`` so the API server
    removes them. Lists are replaced whole; unchanged values are omitted.
    """
    patch: dict[str, Any] = {key: None for key in current if key not in desired}
    for key, value in desired.items():
        old = current.get(key)
        if isinstance(value, dict) and isinstance(old, dict):
            nested = merge_patch(old, value)
            if nested:
                patch[key] = nested
        elif key not in current or old != value:
            patch[key] = copy.deepcopy(value)
    return patch
