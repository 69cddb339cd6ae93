# src/buildplan/utils/__init__.py

from .utils_matching import compile_glob, fnmatchcase_portable, matches_any
from .utils_schema import (
    SchemaIssue,
    ValidationSummary,
    check_schema_conformance,
    collect_msg,
    format_path,
)
from .utils_text import join_keys, plural
from .utils_types import (
    cast_hint,
    is_typeddict,
    literal_to_set,
    required_keys,
    safe_isinstance,
    schema_from_typeddict,
)
from .utils_yaml import (
    Position,
    YamlDocument,
    YamlSyntaxError,
    load_yaml_document,
    load_yaml_file,
    read_yaml_text,
)


__all__ = [  # noqa: RUF022
    # utils_matching
    "compile_glob",
    "fnmatchcase_portable",
    "matches_any",
    # utils_schema
    "SchemaIssue",
    "ValidationSummary",
    "check_schema_conformance",
    "collect_msg",
    "format_path",
    # utils_text
    "join_keys",
    "plural",
    # utils_types
    "cast_hint",
    "is_typeddict",
    "literal_to_set",
    "required_keys",
    "safe_isinstance",
    "schema_from_typeddict",
    # utils_yaml
    "Position",
    "YamlDocument",
    "YamlSyntaxError",
    "load_yaml_document",
    "load_yaml_file",
    "read_yaml_text",
]
