"""Configuration domain exports."""

from .runtime_settings import (
    DEFAULT_RENAME_TEMPLATE,
    CollisionStrategy,
    EntityCategory,
    EquivalenceMode,
    JoinConfiguration,
    PrimaryOperationPolicy,
)
from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration, parse_configuration

__all__ = [
    "DEFAULT_RENAME_TEMPLATE",
    "CollisionStrategy",
    "EntityCategory",
    "EquivalenceMode",
    "JoinConfiguration",
    "PrimaryOperationPolicy",
    "ConfigurationError",
    "load_configuration",
    "parse_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
