# src/buildplan/config/build_config.py
"""Immutable value types produced by the config merger."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from buildplan.constants import DEFAULT_AUTO_APPLY, DEFAULT_BUILD_TO
from buildplan.errors import ConfigParseError, SourceLocation, UnknownAutoApplyError
from buildplan.utils import literal_to_set, matches_any

from .config_types import AutoApply, BuildTo, OriginType


AUTO_APPLY_VALUES: frozenset[str] = frozenset(literal_to_set(AutoApply))
BUILD_TO_VALUES: frozenset[str] = frozenset(literal_to_set(BuildTo))


@dataclass(frozen=True)
class InputSet:
    """Include/exclude globs. Unset include means everything."""

    include: tuple[str, ...] | None = None
    exclude: tuple[str, ...] | None = None

    @classmethod
    def anything(cls) -> InputSet:
        return cls()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | Iterable[str] | None) -> InputSet:
        """Build from `{include, exclude}` or a bare list of include globs."""
        if raw is None:
            return cls()
        if isinstance(raw, Mapping):
            include = raw.get("include")
            exclude = raw.get("exclude")
            return cls(
                include=tuple(include) if include is not None else None,
                exclude=tuple(exclude) if exclude is not None else None,
            )
        return cls(include=tuple(raw))

    @property
    def is_anything(self) -> bool:
        return self.include is None and not self.exclude

    def matches(self, path: str) -> bool:
        path = path.replace("\\", "/")
        if self.include is not None and not matches_any(path, self.include):
            return False
        return not (self.exclude and matches_any(path, self.exclude))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.include is not None:
            data["include"] = list(self.include)
        if self.exclude is not None:
            data["exclude"] = list(self.exclude)
        return data


@dataclass(frozen=True)
class BuilderDefaults:
    generate_for: InputSet | None = None
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BuilderDefinition:
    """A builder declared by `package` under the normalized `key`."""

    kind: ClassVar[str] = "builder"

    package: str
    key: str
    import_: str
    builder_factories: tuple[str, ...]
    auto_apply: str = DEFAULT_AUTO_APPLY
    build_to: str = DEFAULT_BUILD_TO
    is_optional: bool = False
    build_extensions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    required_inputs: tuple[str, ...] = ()
    runs_before: tuple[str, ...] = ()
    defaults: BuilderDefaults | None = None
    location: SourceLocation | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.auto_apply not in AUTO_APPLY_VALUES:
            raise UnknownAutoApplyError(
                self.auto_apply, builder_key=self.key, location=self.location
            )
        if self.build_to not in BUILD_TO_VALUES:
            xmsg = (
                f"Unknown build_to value {self.build_to!r} for `{self.key}`;"
                " expected source or cache"
            )
            raise ConfigParseError(xmsg, location=self.location, key="build_to")

    @property
    def name(self) -> str:
        return self.key.split(":", 1)[1]

    @property
    def output_extensions(self) -> tuple[str, ...]:
        return tuple(ext for outs in self.build_extensions.values() for ext in outs)


@dataclass(frozen=True)
class PostProcessBuilderDefinition(BuilderDefinition):
    """Runs after every regular builder; its keys live in their own namespace."""

    kind: ClassVar[str] = "post_process_builder"

    input_extensions: tuple[str, ...] = ()


@dataclass(frozen=True)
class TargetBuilderConfig:
    """Per-target usage of a builder: opt in/out and scope overrides."""

    enabled: bool | None = None
    generate_for: InputSet | None = None
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BuildTarget:
    kind: ClassVar[str] = "target"

    package: str
    key: str
    dependencies: tuple[str, ...] = ()
    sources: InputSet = field(default_factory=InputSet)
    builders: Mapping[str, TargetBuilderConfig] = field(default_factory=dict)
    location: SourceLocation | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.key.split(":", 1)[1]


@dataclass(frozen=True)
class BuildConfig:
    """The merged configuration of one package."""

    package_name: str
    build_targets: Mapping[str, BuildTarget]
    builder_definitions: Mapping[str, BuilderDefinition] = field(default_factory=dict)
    post_process_builder_definitions: Mapping[str, PostProcessBuilderDefinition] = (
        field(default_factory=dict)
    )
    origin: OriginType = "default"
    source: str | None = None

    def __post_init__(self) -> None:
        default_key = default_target_key(self.package_name)
        if default_key not in self.build_targets:
            xmsg = (
                f"Must specify a target with the name `{self.package_name}`"
                " or `$default`."
            )
            raise ConfigParseError(
                xmsg,
                location=SourceLocation(self.source or f"<{self.origin}>"),
                key="targets",
            )

    @property
    def default_target(self) -> BuildTarget:
        return self.build_targets[default_target_key(self.package_name)]


def default_target_key(package: str) -> str:
    return f"{package}:{package}"
