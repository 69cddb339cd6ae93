# src/buildplan/config/config_loader.py


from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from buildplan.constants import (
    BUILD_CONFIG_FILE,
    DEFAULT_AUTO_APPLY,
    DEFAULT_BUILD_TO,
    DEFAULT_IS_OPTIONAL,
    OVERRIDE_SUFFIX,
)
from buildplan.errors import (
    BuildPlanError,
    ConfigParseError,
    DuplicateKeyError,
    SourceLocation,
    raise_collected,
)
from buildplan.logs import get_app_logger
from buildplan.package_graph import PackageGraph, PackageNode
from buildplan.utils import (
    YamlDocument,
    YamlSyntaxError,
    cast_hint,
    load_yaml_document,
    plural,
    read_yaml_text,
)

from .build_config import (
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
from .config_types import OriginType
from .config_validate import validate_build_config


KeyPath = tuple[str, ...]


@dataclass(frozen=True)
class ConfigContext:
    """The package a configuration is parsed for.

    Passed explicitly to everything that normalizes keys or synthesizes the
    default target.
    """

    package_name: str
    dependencies: tuple[str, ...] = ()
    # None skips the "key refers to a workspace package" check
    known_packages: frozenset[str] | None = None
    source: str | None = None
    origin: OriginType = "file"

    @classmethod
    def for_package(
        cls,
        graph: PackageGraph,
        name: str,
        *,
        source: str | None = None,
        origin: OriginType = "file",
    ) -> "ConfigContext":
        return cls(
            package_name=name,
            dependencies=graph[name].dependencies,
            known_packages=frozenset(graph.all_packages),
            source=source,
            origin=origin,
        )

    @property
    def label(self) -> str:
        return self.source or f"<{self.origin}:{self.package_name}>"


# --------------------------------------------------------------------------- #
# helpers
# --------------------------------------------------------------------------- #


def _location(
    context: ConfigContext,
    doc: YamlDocument | None,
    path: KeyPath,
) -> SourceLocation:
    pos = doc.position_of(path) if doc is not None else None
    return SourceLocation(
        context.label,
        pos.line if pos else None,
        pos.column if pos else None,
        package=context.package_name,
    )


def _check_known_package(
    key: str,
    raw_key: str,
    context: ConfigContext,
    location: SourceLocation,
) -> None:
    package = key_package(key)
    if context.known_packages is not None and package not in context.known_packages:
        xmsg = f"Key `{raw_key}` refers to `{package}`, which is not a workspace package."
        raise ConfigParseError(xmsg, location=location, key=raw_key)


def _definition_key(
    raw_key: str,
    context: ConfigContext,
    doc: YamlDocument | None,
    path: KeyPath,
) -> str:
    location = _location(context, doc, path)
    try:
        key = normalize_key_definition(raw_key, context.package_name)
    except ValueError as e:
        raise ConfigParseError(str(e), location=location, key=raw_key) from e
    _check_known_package(key, raw_key, context, location)
    return key


def _usage_key(
    raw_key: str,
    context: ConfigContext,
    doc: YamlDocument | None,
    path: KeyPath,
) -> str:
    location = _location(context, doc, path)
    try:
        key = normalize_key_usage(raw_key, context.package_name)
    except ValueError as e:
        raise ConfigParseError(str(e), location=location, key=raw_key) from e
    _check_known_package(key, raw_key, context, location)
    return key


def _optional_input_set(raw: Any) -> InputSet | None:
    if raw is None:
        return None
    return InputSet.from_raw(raw)


# --------------------------------------------------------------------------- #
# parsing
# --------------------------------------------------------------------------- #


def default_build_config(context: ConfigContext) -> BuildConfig:
    """The config of a package without `build.yaml`: one catch-all target."""
    key = default_target_key(context.package_name)
    target = BuildTarget(
        package=context.package_name,
        key=key,
        dependencies=tuple(
            normalize_key_usage(dep, context.package_name)
            for dep in context.dependencies
        ),
        sources=InputSet.anything(),
        location=SourceLocation(context.label, package=context.package_name),
    )
    return BuildConfig(
        package_name=context.package_name,
        build_targets={key: target},
        origin="default",
        source=context.source,
    )


def _parse_definition(
    section: str,
    raw_key: str,
    raw: dict[str, Any],
    context: ConfigContext,
    doc: YamlDocument | None,
) -> BuilderDefinition:
    path: KeyPath = (section, raw_key)
    key = _definition_key(raw_key, context, doc, path)
    location = _location(context, doc, path)

    defaults: BuilderDefaults | None = None
    raw_defaults = raw.get("defaults")
    if raw_defaults is not None:
        defaults = BuilderDefaults(
            generate_for=_optional_input_set(raw_defaults.get("generate_for")),
            options=dict(raw_defaults.get("options") or {}),
        )

    runs_before = tuple(
        _usage_key(k, context, doc, (*path, "runs_before", str(i)))
        for i, k in enumerate(raw.get("runs_before", []))
    )

    kwargs: dict[str, Any] = {
        "package": context.package_name,
        "key": key,
        "import_": raw["import"],
        "builder_factories": tuple(raw["builder_factories"]),
        "auto_apply": raw.get("auto_apply", DEFAULT_AUTO_APPLY),
        "build_to": raw.get("build_to", DEFAULT_BUILD_TO),
        "is_optional": raw.get("is_optional", DEFAULT_IS_OPTIONAL),
        "build_extensions": {
            ext: tuple(outputs)
            for ext, outputs in raw.get("build_extensions", {}).items()
        },
        "required_inputs": tuple(raw.get("required_inputs", [])),
        "runs_before": runs_before,
        "defaults": defaults,
        "location": location,
    }
    if section == "post_process_builders":
        kwargs["input_extensions"] = tuple(raw.get("input_extensions", []))
        return PostProcessBuilderDefinition(**kwargs)
    return BuilderDefinition(**kwargs)


def _parse_definitions(
    section: str,
    raw_section: dict[str, Any],
    context: ConfigContext,
    doc: YamlDocument | None,
) -> dict[str, Any]:
    definitions: dict[str, BuilderDefinition] = {}
    for raw_key, raw in raw_section.items():
        definition = _parse_definition(section, raw_key, raw, context, doc)
        if definition.key in definitions:
            raise DuplicateKeyError(
                definition.key,
                kind=definition.kind,
                first=definitions[definition.key].location,
                second=definition.location,
            )
        definitions[definition.key] = definition
    return definitions


def _parse_target(
    raw_key: str,
    raw: dict[str, Any] | None,
    context: ConfigContext,
    doc: YamlDocument | None,
) -> BuildTarget:
    path: KeyPath = ("targets", raw_key)
    key = _definition_key(raw_key, context, doc, path)
    raw = raw or {}

    dependencies = tuple(
        _usage_key(dep, context, doc, (*path, "dependencies", str(i)))
        for i, dep in enumerate(raw.get("dependencies", []))
    )

    builders: dict[str, TargetBuilderConfig] = {}
    for builder_key, usage in (raw.get("builders") or {}).items():
        normalized = _usage_key(builder_key, context, doc, (*path, "builders", builder_key))
        usage = usage or {}
        builders[normalized] = TargetBuilderConfig(
            enabled=usage.get("enabled"),
            generate_for=_optional_input_set(usage.get("generate_for")),
            options=dict(usage.get("options") or {}),
        )

    return BuildTarget(
        package=context.package_name,
        key=key,
        dependencies=dependencies,
        sources=InputSet.from_raw(raw.get("sources")),
        builders=builders,
        location=_location(context, doc, path),
    )


def _parse_targets(
    raw_targets: dict[str, Any],
    context: ConfigContext,
    doc: YamlDocument | None,
) -> dict[str, BuildTarget]:
    targets: dict[str, BuildTarget] = {}
    for raw_key, raw in raw_targets.items():
        target = _parse_target(raw_key, raw, context, doc)
        if target.key in targets:
            raise DuplicateKeyError(
                target.key,
                kind=target.kind,
                first=targets[target.key].location,
                second=target.location,
            )
        targets[target.key] = target

    if default_target_key(context.package_name) not in targets:
        xmsg = (
            f"Must specify a target with the name `{context.package_name}`"
            " or `$default`."
        )
        raise ConfigParseError(
            xmsg, location=_location(context, doc, ("targets",)), key="targets"
        )
    return targets


def parse_build_config(
    raw_config: Any,
    context: ConfigContext,
    *,
    doc: YamlDocument | None = None,
) -> BuildConfig:
    """Validate and normalize a parsed `build.yaml` mapping for one package.

    An empty document yields the default config. Keys are normalized against
    `context.package_name`.

    Raises:
        ConfigParseError: unknown keys, wrong types, missing default target.
        UnknownAutoApplyError: an auto_apply value outside the known set.
        DuplicateKeyError: two keys normalize to the same key.
    """
    logger = get_app_logger()
    logger.trace(
        f"[parse_build_config] Parsing config for `{context.package_name}`"
        f" from {context.label}"
    )

    if raw_config is None or raw_config == {}:
        return default_build_config(context)

    summary = validate_build_config(raw_config)
    if not summary.valid:
        first = summary.errors[0]
        messages = summary.messages()
        xmsg = (
            f"Invalid build configuration for `{context.package_name}`"
            f" ({len(messages)} error{plural(messages)}):\n  " + "\n  ".join(messages)
        )
        raise ConfigParseError(
            xmsg, location=_location(context, doc, first.path), key=first.key
        )

    raw = cast_hint(dict[str, Any], raw_config)
    builders = _parse_definitions("builders", raw.get("builders") or {}, context, doc)
    post_process = _parse_definitions(
        "post_process_builders", raw.get("post_process_builders") or {}, context, doc
    )
    if "targets" in raw:
        targets = _parse_targets(raw["targets"] or {}, context, doc)
    else:
        targets = dict(default_build_config(context).build_targets)

    logger.debug(
        "Config for `%s`: %d builder(s), %d post-process builder(s), %d target(s)",
        context.package_name,
        len(builders),
        len(post_process),
        len(targets),
    )
    return BuildConfig(
        package_name=context.package_name,
        build_targets=targets,
        builder_definitions=builders,
        post_process_builder_definitions=post_process,
        origin=context.origin,
        source=context.source,
    )


def _syntax_error(e: YamlSyntaxError, context: ConfigContext) -> ConfigParseError:
    pos = e.position
    return ConfigParseError(
        str(e),
        location=SourceLocation(
            context.label,
            pos.line if pos else None,
            pos.column if pos else None,
            package=context.package_name,
        ),
    )


def parse_build_yaml(text: str, context: ConfigContext) -> BuildConfig:
    """Parse `build.yaml` text, with line/column locations in errors."""
    try:
        doc = load_yaml_document(text)
    except YamlSyntaxError as e:
        raise _syntax_error(e, context) from e

    if doc.duplicates:
        path, first, second = doc.duplicates[0]
        raise DuplicateKeyError(
            ".".join(path),
            kind="mapping",
            first=SourceLocation(context.label, first.line, first.column),
            second=SourceLocation(context.label, second.line, second.column),
        )

    return parse_build_config(doc.data, context, doc=doc)


def parse_build_file(path: Path, context: ConfigContext) -> BuildConfig:
    """Read and parse a `build.yaml` file; undecodable bytes are a parse error."""
    try:
        text = read_yaml_text(path)
    except YamlSyntaxError as e:
        raise _syntax_error(e, context) from e
    return parse_build_yaml(text, context)


def load_build_config(
    graph: PackageGraph,
    node: PackageNode,
    overrides: Mapping[str, BuildConfig],
) -> BuildConfig:
    """Return the override, the parsed `build.yaml`, or the default config."""
    logger = get_app_logger()
    if node.name in overrides:
        logger.debug("Using override config for `%s`", node.name)
        return overrides[node.name]

    config_path = graph.package_dir(node.name) / BUILD_CONFIG_FILE
    if config_path.is_file():
        context = ConfigContext.for_package(graph, node.name, source=str(config_path))
        return parse_build_file(config_path, context)

    logger.trace(f"[load_build_config] No {BUILD_CONFIG_FILE} for `{node.name}`")
    return default_build_config(ConfigContext.for_package(graph, node.name, origin="default"))


# --------------------------------------------------------------------------- #
# overrides
# --------------------------------------------------------------------------- #


def find_build_config_overrides(graph: PackageGraph) -> dict[str, BuildConfig]:
    """Parse `<package>.build.yaml` files in the root package directory."""
    logger = get_app_logger()
    overrides: dict[str, BuildConfig] = {}
    for path in sorted(graph.root_dir.glob(f"*{OVERRIDE_SUFFIX}")):
        name = path.name[: -len(OVERRIDE_SUFFIX)]
        if name not in graph:
            logger.warning(
                "Ignoring %s: `%s` is not a package of this workspace.",
                path.name,
                name,
            )
            continue
        context = ConfigContext.for_package(
            graph, name, source=str(path), origin="override_file"
        )
        overrides[name] = parse_build_file(path, context)
        logger.debug("Found override file %s for `%s`", path.name, name)
    return overrides


def resolve_overrides(
    graph: PackageGraph,
    overrides: Mapping[str, BuildConfig | Mapping[str, Any] | Path],
) -> dict[str, BuildConfig]:
    """Turn an override map into BuildConfigs keyed by package name.

    Raw mappings and files are parsed as if they were that package's
    `build.yaml`.
    """
    logger = get_app_logger()
    resolved: dict[str, BuildConfig] = {}
    for name, override in overrides.items():
        if name not in graph:
            logger.warning("Ignoring override for unknown package `%s`.", name)
            continue
        if isinstance(override, BuildConfig):
            if override.package_name != name:
                xmsg = (
                    f"Override for `{name}` is a config for"
                    f" `{override.package_name}`."
                )
                raise ConfigParseError(
                    xmsg, location=SourceLocation(f"<override:{name}>"), key=name
                )
            resolved[name] = override
            continue
        if isinstance(override, Path):
            context = ConfigContext.for_package(
                graph, name, source=str(override), origin="override_file"
            )
            resolved[name] = parse_build_file(override, context)
            logger.debug("Override for `%s` from %s", name, override)
            continue
        context = ConfigContext.for_package(graph, name, origin="override")
        resolved[name] = parse_build_config(dict(override), context)
    return resolved


# --------------------------------------------------------------------------- #
# fan-out loading
# --------------------------------------------------------------------------- #


def load_build_configs(
    graph: PackageGraph,
    overrides: Mapping[str, BuildConfig] | None = None,
    *,
    max_workers: int | None = None,
) -> list[BuildConfig]:
    """Load every package's config concurrently, returned in graph order.

    All reads finish before anything is returned. One failure is raised as
    is; several are raised together as a PlanningError.
    """
    logger = get_app_logger()
    overrides = overrides or {}
    packages = graph.ordered_packages()
    logger.debug(
        "Loading build configs for %d package(s) (%d override(s))",
        len(packages),
        len(overrides),
    )

    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="buildplan-config"
    ) as executor:
        futures = [
            executor.submit(load_build_config, graph, node, overrides)
            for node in packages
        ]
        wait(futures)

    configs: list[BuildConfig] = []
    errors: list[BuildPlanError] = []
    for future in futures:
        exc = future.exception()
        if exc is None:
            configs.append(future.result())
        elif isinstance(exc, BuildPlanError):
            errors.append(exc)
        else:
            raise exc

    raise_collected(errors)
    return configs


# --------------------------------------------------------------------------- #
# key registry
# --------------------------------------------------------------------------- #


class KeyRegistry:
    """Write-once namespace of normalized keys, one namespace per kind."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], SourceLocation] = {}

    def __contains__(self, slot: object) -> bool:
        return slot in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, kind: str, key: str, location: SourceLocation) -> None:
        slot = (kind, key)
        if slot in self._entries:
            raise DuplicateKeyError(
                key, kind=kind, first=self._entries[slot], second=location
            )
        self._entries[slot] = location


def _declared_at(config: BuildConfig, location: SourceLocation | None) -> SourceLocation:
    if location is not None:
        return location
    return SourceLocation(
        config.source or f"<{config.origin}:{config.package_name}>",
        package=config.package_name,
    )


def register_keys(configs: list[BuildConfig]) -> KeyRegistry:
    """Register every declared key in package order.

    Raises:
        DuplicateKeyError: a key was already registered by an earlier package.
        PlanningError: more than one duplicate was found.
    """
    registry = KeyRegistry()
    errors: list[BuildPlanError] = []
    for config in configs:
        declarations = [
            *config.builder_definitions.values(),
            *config.post_process_builder_definitions.values(),
            *config.build_targets.values(),
        ]
        for decl in declarations:
            try:
                registry.register(
                    decl.kind, decl.key, _declared_at(config, decl.location)
                )
            except DuplicateKeyError as e:
                errors.append(e)
    raise_collected(errors)
    return registry
