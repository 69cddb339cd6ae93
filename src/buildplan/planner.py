# src/buildplan/planner.py
"""Turn ordered builder definitions into a resolved application plan."""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Protocol

from .config import (
    BuildConfig,
    BuilderDefinition,
    BuildTarget,
    InputSet,
    PostProcessBuilderDefinition,
    find_build_config_overrides,
    key_package,
    load_build_configs,
    register_keys,
    resolve_overrides,
)
from .errors import (
    BuilderReferenceError,
    BuildPlanError,
    MissingPackageError,
    PlanningError,
)
from .logs import get_app_logger
from .ordering import find_builder_order
from .package_graph import PackageGraph


# --------------------------------------------------------------------------- #
# factory references
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class FactoryRef:
    """A named builder constructor inside an importable module."""

    module: str
    name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.module}:{self.name}"

    def load(self) -> Callable[..., Any]:
        module = importlib.import_module(self.module)
        factory = getattr(module, self.name)
        if not callable(factory):
            xmsg = f"{self.qualified_name} is not callable"
            raise TypeError(xmsg)
        return factory

    def __str__(self) -> str:
        return self.qualified_name


class FactoryResolver(Protocol):
    def resolve(self, definition: BuilderDefinition) -> list[FactoryRef]: ...


class SyntaxFactoryResolver:
    """Checks references are well-formed without importing anything."""

    def resolve(self, definition: BuilderDefinition) -> list[FactoryRef]:
        module = definition.import_
        if not module or not all(part.isidentifier() for part in module.split(".")):
            raise BuilderReferenceError(
                definition.key, module, "not a dotted Python module path"
            )
        if not definition.builder_factories:
            raise BuilderReferenceError(
                definition.key, module, "no builder factories listed"
            )
        refs: list[FactoryRef] = []
        for name in definition.builder_factories:
            if not name.isidentifier():
                raise BuilderReferenceError(
                    definition.key,
                    f"{module}:{name}",
                    "factory name is not an identifier",
                )
            refs.append(FactoryRef(module, name))
        return refs


class ImportingFactoryResolver(SyntaxFactoryResolver):
    """Also imports each module and checks every factory is callable."""

    def resolve(self, definition: BuilderDefinition) -> list[FactoryRef]:
        refs = super().resolve(definition)
        try:
            module = importlib.import_module(definition.import_)
        except ImportError as e:
            raise BuilderReferenceError(
                definition.key, definition.import_, f"cannot be imported ({e})"
            ) from e

        for ref in refs:
            factory = getattr(module, ref.name, None)
            if factory is None:
                raise BuilderReferenceError(
                    definition.key, ref.qualified_name, "no such attribute"
                )
            if not callable(factory):
                raise BuilderReferenceError(
                    definition.key, ref.qualified_name, "not callable"
                )
        return refs


# --------------------------------------------------------------------------- #
# plan values
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class ApplyTo:
    """Where an application runs unless a target says otherwise."""

    policy: str
    packages: tuple[str, ...]
    generate_for: InputSet = field(default_factory=InputSet)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy": self.policy,
            "packages": list(self.packages),
            "generate_for": self.generate_for.to_dict(),
        }


@dataclass(frozen=True)
class BuilderApplication:
    kind: ClassVar[str] = "builder"

    package: str
    name: str
    factories: tuple[FactoryRef, ...]
    apply_to: ApplyTo
    is_optional: bool = False
    hide_output: bool = True
    build_extensions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.package}:{self.name}"

    def applies_to_package(self, package: str) -> bool:
        return package in self.apply_to.packages

    def applies_to_input(self, package: str, path: str) -> bool:
        return self.applies_to_package(package) and self.apply_to.generate_for.matches(
            path
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "key": self.key,
            "package": self.package,
            "name": self.name,
            "factories": [f.qualified_name for f in self.factories],
            "apply_to": self.apply_to.to_dict(),
            "is_optional": self.is_optional,
            "hide_output": self.hide_output,
            "build_extensions": {
                ext: list(outs) for ext, outs in self.build_extensions.items()
            },
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class PostProcessBuilderApplication(BuilderApplication):
    kind: ClassVar[str] = "post_process_builder"

    input_extensions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["input_extensions"] = list(self.input_extensions)
        return data


def _target_to_dict(target: BuildTarget) -> dict[str, Any]:
    builders: dict[str, Any] = {}
    for key, usage in target.builders.items():
        entry: dict[str, Any] = {}
        if usage.enabled is not None:
            entry["enabled"] = usage.enabled
        if usage.generate_for is not None:
            entry["generate_for"] = usage.generate_for.to_dict()
        if usage.options:
            entry["options"] = dict(usage.options)
        builders[key] = entry
    return {
        "key": target.key,
        "package": target.package,
        "dependencies": list(target.dependencies),
        "sources": target.sources.to_dict(),
        "builders": builders,
    }


@dataclass(frozen=True)
class BuildPlan:
    """The ordered, fully resolved result handed to the build engine."""

    root_package: str
    package_order: tuple[str, ...]
    builder_applications: tuple[BuilderApplication, ...] = ()
    post_process_applications: tuple[PostProcessBuilderApplication, ...] = ()
    build_targets: Mapping[str, BuildTarget] = field(default_factory=dict)

    @property
    def all_applications(self) -> tuple[BuilderApplication, ...]:
        """Regular applications first, then post-process applications."""
        return (*self.builder_applications, *self.post_process_applications)

    def applications_for_target(self, target_key: str) -> list[BuilderApplication]:
        """Applications that run for one target, in plan order.

        A target can switch an application on or off with `enabled`.
        Otherwise an application runs when its default scope includes the
        target's package and it is not optional.
        """
        if target_key not in self.build_targets:
            xmsg = f"Unknown target `{target_key}`"
            raise KeyError(xmsg)
        target = self.build_targets[target_key]

        selected: list[BuilderApplication] = []
        for app in self.all_applications:
            usage = target.builders.get(app.key)
            enabled = usage.enabled if usage is not None else None
            if enabled is None:
                enabled = not app.is_optional and app.applies_to_package(
                    target.package
                )
            if enabled:
                selected.append(app)
        return selected

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_package": self.root_package,
            "package_order": list(self.package_order),
            "builder_applications": [a.to_dict() for a in self.builder_applications],
            "post_process_applications": [
                a.to_dict() for a in self.post_process_applications
            ],
            "build_targets": {
                key: _target_to_dict(t) for key, t in self.build_targets.items()
            },
        }


# --------------------------------------------------------------------------- #
# planning
# --------------------------------------------------------------------------- #


def resolve_apply_to(definition: BuilderDefinition, graph: PackageGraph) -> ApplyTo:
    """Expand a builder's auto_apply policy into concrete package names."""
    # BuilderDefinition only accepts the four known policies
    policy = definition.auto_apply
    if policy == "dependents":
        packages = graph.dependents_of(definition.package)
    elif policy == "all_packages":
        packages = [n.name for n in graph.ordered_packages()]
    elif policy == "root_package":
        packages = [graph.root.name]
    else:
        packages = []

    generate_for = InputSet.anything()
    if definition.defaults is not None and definition.defaults.generate_for is not None:
        generate_for = definition.defaults.generate_for
    return ApplyTo(policy=policy, packages=tuple(packages), generate_for=generate_for)


def _apply(
    definition: BuilderDefinition,
    graph: PackageGraph,
    resolver: FactoryResolver,
) -> BuilderApplication:
    # identity follows the key, which may name another package than the declaring one
    kwargs: dict[str, Any] = {
        "package": key_package(definition.key),
        "name": definition.name,
        "factories": tuple(resolver.resolve(definition)),
        "apply_to": resolve_apply_to(definition, graph),
        "is_optional": definition.is_optional,
        "hide_output": definition.build_to == "cache",
        "build_extensions": dict(definition.build_extensions),
        "options": dict(definition.defaults.options) if definition.defaults else {},
    }
    if isinstance(definition, PostProcessBuilderDefinition):
        return PostProcessBuilderApplication(
            input_extensions=definition.input_extensions, **kwargs
        )
    return BuilderApplication(**kwargs)


def build_plan(
    graph: PackageGraph,
    configs: Sequence[BuildConfig],
    *,
    resolver: FactoryResolver | None = None,
) -> BuildPlan:
    """Compute the plan for already-loaded configs.

    Raises:
        DuplicateKeyError: Two packages declare the same key.
        CyclicBuilderOrderError: Builder ordering edges form a cycle.
        PlanningError: One or more builder references failed to resolve.
    """
    logger = get_app_logger()
    resolver = resolver or SyntaxFactoryResolver()

    for config in configs:
        if config.package_name not in graph:
            raise MissingPackageError(
                config.package_name, detail="config for a package outside the graph"
            )
    configs = sorted(configs, key=lambda c: graph.position(c.package_name))
    register_keys(list(configs))

    builders = find_builder_order(
        [d for c in configs for d in c.builder_definitions.values()]
    )
    post_process = find_builder_order(
        [d for c in configs for d in c.post_process_builder_definitions.values()]
    )

    errors: list[BuildPlanError] = []
    applications: list[BuilderApplication] = []
    post_applications: list[PostProcessBuilderApplication] = []
    for definition in [*builders, *post_process]:
        try:
            app = _apply(definition, graph, resolver)
        except BuilderReferenceError as e:
            errors.append(e)
            continue
        logger.debug(
            "Planned %s `%s` for %d package(s)",
            app.kind.replace("_", " "),
            app.key,
            len(app.apply_to.packages),
        )
        if isinstance(app, PostProcessBuilderApplication):
            post_applications.append(app)
        else:
            applications.append(app)

    if errors:
        raise PlanningError(errors)

    return BuildPlan(
        root_package=graph.root.name,
        package_order=tuple(n.name for n in graph.ordered_packages()),
        builder_applications=tuple(applications),
        post_process_applications=tuple(post_applications),
        build_targets={
            key: target for c in configs for key, target in c.build_targets.items()
        },
    )


def plan_workspace(
    root_dir: Path | str,
    *,
    overrides: Mapping[str, BuildConfig | Mapping[str, Any] | Path] | None = None,
    package_paths: Mapping[str, Path | str] | None = None,
    resolver: FactoryResolver | None = None,
    max_workers: int | None = None,
) -> BuildPlan:
    """Discover a workspace on disk and compute its plan.

    Override files in the root directory apply first; `overrides` passed
    here replace them for the same package. An override is a BuildConfig,
    a raw `build.yaml` mapping, or the Path of a file to parse.
    """
    logger = get_app_logger()
    graph = PackageGraph.for_workspace(root_dir, package_paths=package_paths)
    logger.debug("Package order: %s", ", ".join(n.name for n in graph.ordered_packages()))

    resolved = find_build_config_overrides(graph)
    resolved.update(resolve_overrides(graph, overrides or {}))

    configs = load_build_configs(graph, resolved, max_workers=max_workers)
    return build_plan(graph, configs, resolver=resolver)
