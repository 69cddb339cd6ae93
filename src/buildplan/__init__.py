# src/buildplan/__init__.py

"""BuildPlan: order builders across a multi-package workspace.

Full developer API
==================
This package re-exports all non-private symbols from its submodules,
making it suitable for programmatic use, custom integrations, or plugins.
Anything prefixed with "_" is considered internal and may change.

Highlights:
    - main()              → CLI entrypoint
    - plan_workspace()    → Discover a workspace on disk and plan it
    - build_plan()        → Plan already-loaded configs
    - get_emitter()       → Render a plan as json or text
"""

from .cli import main
from .config import (
    BuildConfig,
    BuilderDefinition,
    BuildTarget,
    ConfigContext,
    InputSet,
    KeyRegistry,
    PostProcessBuilderDefinition,
    TargetBuilderConfig,
    default_build_config,
    find_build_config_overrides,
    load_build_configs,
    normalize_key_definition,
    normalize_key_usage,
    parse_build_config,
    parse_build_file,
    parse_build_yaml,
    register_keys,
    resolve_overrides,
    validate_build_config,
)
from .constants import (
    BUILD_CONFIG_FILE,
    DEFAULT_KEY,
    MANIFEST_FILE,
    OVERRIDE_SUFFIX,
    PACKAGE_MAP_FILE,
)
from .emit import JsonPlanEmitter, PlanEmitter, TextPlanEmitter, get_emitter
from .errors import (
    BuilderReferenceError,
    BuildPlanError,
    ConfigParseError,
    CyclicBuilderOrderError,
    DuplicateKeyError,
    MissingPackageError,
    PlanningError,
    SourceLocation,
    UnknownAutoApplyError,
)
from .logs import get_app_logger
from .meta import PROGRAM_DISPLAY, PROGRAM_PACKAGE, __version__, get_metadata
from .ordering import find_builder_order, runs_after_edges
from .package_graph import PackageGraph, PackageNode, strongly_connected_components
from .planner import (
    ApplyTo,
    BuilderApplication,
    BuildPlan,
    FactoryRef,
    FactoryResolver,
    ImportingFactoryResolver,
    PostProcessBuilderApplication,
    SyntaxFactoryResolver,
    build_plan,
    plan_workspace,
    resolve_apply_to,
)


__all__ = [  # noqa: RUF022
    # cli
    "main",
    # config
    "BuildConfig",
    "BuilderDefinition",
    "BuildTarget",
    "ConfigContext",
    "InputSet",
    "KeyRegistry",
    "PostProcessBuilderDefinition",
    "TargetBuilderConfig",
    "default_build_config",
    "find_build_config_overrides",
    "load_build_configs",
    "normalize_key_definition",
    "normalize_key_usage",
    "parse_build_config",
    "parse_build_file",
    "parse_build_yaml",
    "register_keys",
    "resolve_overrides",
    "validate_build_config",
    # constants
    "BUILD_CONFIG_FILE",
    "DEFAULT_KEY",
    "MANIFEST_FILE",
    "OVERRIDE_SUFFIX",
    "PACKAGE_MAP_FILE",
    # emit
    "JsonPlanEmitter",
    "PlanEmitter",
    "TextPlanEmitter",
    "get_emitter",
    # errors
    "BuilderReferenceError",
    "BuildPlanError",
    "ConfigParseError",
    "CyclicBuilderOrderError",
    "DuplicateKeyError",
    "MissingPackageError",
    "PlanningError",
    "SourceLocation",
    "UnknownAutoApplyError",
    # logs
    "get_app_logger",
    # meta
    "PROGRAM_DISPLAY",
    "PROGRAM_PACKAGE",
    "__version__",
    "get_metadata",
    # ordering
    "find_builder_order",
    "runs_after_edges",
    # package_graph
    "PackageGraph",
    "PackageNode",
    "strongly_connected_components",
    # planner
    "ApplyTo",
    "BuilderApplication",
    "BuildPlan",
    "FactoryRef",
    "FactoryResolver",
    "ImportingFactoryResolver",
    "PostProcessBuilderApplication",
    "SyntaxFactoryResolver",
    "build_plan",
    "plan_workspace",
    "resolve_apply_to",
]
