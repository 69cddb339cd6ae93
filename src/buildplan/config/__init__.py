# src/buildplan/config/__init__.py

"""Per-package build configuration.

This module provides loading, validation, key normalization and override
handling for `build.yaml` files.
"""

from .build_config import (
    AUTO_APPLY_VALUES,
    BUILD_TO_VALUES,
    BuildConfig,
    BuilderDefaults,
    BuilderDefinition,
    BuildTarget,
    InputSet,
    PostProcessBuilderDefinition,
    TargetBuilderConfig,
    default_target_key,
)
from .config_keys import key_package, normalize_key_definition, normalize_key_usage
from .config_loader import (
    ConfigContext,
    KeyRegistry,
    default_build_config,
    find_build_config_overrides,
    load_build_config,
    load_build_configs,
    parse_build_config,
    parse_build_file,
    parse_build_yaml,
    register_keys,
    resolve_overrides,
)
from .config_types import (
    AutoApply,
    BuilderConfig,
    BuilderDefaultsConfig,
    BuildTargetConfig,
    BuildTo,
    BuildYamlConfig,
    InputSetConfig,
    OriginType,
    PostProcessBuilderConfig,
    TargetBuilderUsageConfig,
)
from .config_validate import validate_build_config


__all__ = [  # noqa: RUF022
    # build_config
    "AUTO_APPLY_VALUES",
    "BUILD_TO_VALUES",
    "BuildConfig",
    "BuilderDefaults",
    "BuilderDefinition",
    "BuildTarget",
    "InputSet",
    "PostProcessBuilderDefinition",
    "TargetBuilderConfig",
    "default_target_key",
    # config_keys
    "key_package",
    "normalize_key_definition",
    "normalize_key_usage",
    # config_loader
    "ConfigContext",
    "KeyRegistry",
    "default_build_config",
    "find_build_config_overrides",
    "load_build_config",
    "load_build_configs",
    "parse_build_config",
    "parse_build_file",
    "parse_build_yaml",
    "register_keys",
    "resolve_overrides",
    # config_types
    "AutoApply",
    "BuilderConfig",
    "BuilderDefaultsConfig",
    "BuildTargetConfig",
    "BuildTo",
    "BuildYamlConfig",
    "InputSetConfig",
    "OriginType",
    "PostProcessBuilderConfig",
    "TargetBuilderUsageConfig",
    # config_validate
    "validate_build_config",
]
