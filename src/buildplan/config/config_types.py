# src/buildplan/config/config_types.py
"""Raw `build.yaml` shapes, used as validation schemas."""

from typing import Any, Literal, TypedDict


AutoApply = Literal["none", "dependents", "all_packages", "root_package"]
BuildTo = Literal["source", "cache"]

# where a BuildConfig came from
OriginType = Literal["file", "default", "override_file", "override"]


class InputSetConfig(TypedDict, total=False):
    include: list[str]
    exclude: list[str]


class BuilderDefaultsConfig(TypedDict, total=False):
    generate_for: InputSetConfig | list[str]
    options: dict[str, Any]


# `import` is a keyword, hence the functional form for the required part
_BuilderConfigRequired = TypedDict(
    "_BuilderConfigRequired",
    {
        "import": str,
        "builder_factories": list[str],
    },
)


class BuilderConfig(_BuilderConfigRequired, total=False):
    # validated separately so unknown values raise UnknownAutoApplyError
    auto_apply: str
    build_to: BuildTo
    is_optional: bool
    build_extensions: dict[str, list[str]]
    required_inputs: list[str]
    runs_before: list[str]
    defaults: BuilderDefaultsConfig


class PostProcessBuilderConfig(BuilderConfig, total=False):
    input_extensions: list[str]


class TargetBuilderUsageConfig(TypedDict, total=False):
    enabled: bool
    generate_for: InputSetConfig | list[str]
    options: dict[str, Any]


class BuildTargetConfig(TypedDict, total=False):
    dependencies: list[str]
    sources: InputSetConfig | list[str]
    builders: dict[str, TargetBuilderUsageConfig | None]


class BuildYamlConfig(TypedDict, total=False):
    builders: dict[str, BuilderConfig]
    post_process_builders: dict[str, PostProcessBuilderConfig]
    targets: dict[str, BuildTargetConfig | None]
