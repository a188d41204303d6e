"""DesiredStateBuilder: resolved options -> desired child resources."""

from .apicast import build_apicast
from .backend import build_backend
from .common import BuildTarget
from .memcached import build_memcached
from .system import build_system
from .zync import build_zync

__all__ = [
    "BuildTarget",
    "build_apicast",
    "build_backend",
    "build_memcached",
    "build_system",
    "build_zync",
]
