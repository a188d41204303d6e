"""SpecResolver: RootSpec + secrets -> one validated options value per subcomponent.

Every resolver follows the same field order: identity/labels, images,
secret-backed fields, resource footprint, replicas, then ``validate()``.
"""

from .apicast import resolve_apicast
from .backend import resolve_backend
from .context import ResolutionContext
from .memcached import resolve_memcached
from .secret_source import SecretBackedField, SecretSource, generate_secret, templated
from .system import resolve_system
from .zync import resolve_zync

__all__ = [
    "ResolutionContext",
    "SecretBackedField",
    "SecretSource",
    "generate_secret",
    "templated",
    "resolve_apicast",
    "resolve_backend",
    "resolve_memcached",
    "resolve_system",
    "resolve_zync",
]
