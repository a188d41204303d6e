from .config_data import ImageSettings, LoggingSettings, OperatorSettings, build_constants
from .config_loader import configure_logging, load_config
from .config_utils import substitute_env_vars

__all__ = [
    "ImageSettings",
    "LoggingSettings",
    "OperatorSettings",
    "build_constants",
    "configure_logging",
    "load_config",
    "substitute_env_vars",
]
