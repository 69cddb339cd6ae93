# src/buildplan/utils/utils_schema.py


from dataclasses import dataclass, field
from difflib import get_close_matches
from types import UnionType
from typing import Any, Union, get_args, get_origin

from .utils_matching import fnmatchcase_portable
from .utils_text import join_keys, plural
from .utils_types import (
    cast_hint,
    is_typeddict,
    required_keys,
    safe_isinstance,
    schema_from_typeddict,
)


# --- constants ----------------------------------------------------------


DEFAULT_HINT_CUTOFF: float = 0.75

KeyPath = tuple[str, ...]


# --- dataclasses ------------------------------------------------------


@dataclass
class SchemaIssue:
    msg: str
    path: KeyPath  # where in the document the issue sits
    key: str | None = None  # the offending key, when there is one


@dataclass
class ValidationSummary:
    valid: bool = True
    errors: list[SchemaIssue] = field(default_factory=list)
    warnings: list[SchemaIssue] = field(default_factory=list)

    def messages(self) -> list[str]:
        return [issue.msg for issue in self.errors]


# --- helpers --------------------------------------------------------


def format_path(path: KeyPath) -> str:
    """Render a key path for messages ("builders.gen.auto_apply")."""
    if not path:
        return "top level"
    return ".".join(path)


def collect_msg(
    msg: str,
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
    key: str | None = None,
    is_error: bool = True,
) -> None:
    """Route a message to the appropriate bucket. Errors are always fatal."""
    issue = SchemaIssue(msg=msg, path=path, key=key)
    if is_error:
        summary.errors.append(issue)
        summary.valid = False
    else:
        summary.warnings.append(issue)


def _get_example_for_field(
    field_path: str,
    field_examples: dict[str, str] | None = None,
) -> str | None:
    """Get example for field if available in field_examples.

    Patterns may use `*` for one path segment
    (e.g. "builders.*.auto_apply").
    """
    if field_examples is None:
        return None

    if field_path in field_examples:
        return field_examples[field_path]

    slashed = field_path.replace(".", "/")
    for pattern, example in field_examples.items():
        if "*" in pattern and fnmatchcase_portable(slashed, pattern.replace(".", "/")):
            return example

    return None


def _infer_type_label(
    expected_type: Any,
) -> str:
    """Return a readable label for messages (e.g. 'list[str]', 'BuilderConfig')."""
    try:
        origin = get_origin(expected_type)
        args = get_args(expected_type)

        if origin in {Union, UnionType}:
            return " or ".join(_infer_type_label(a) for a in args)
        if origin is list and args:
            return f"list[{_infer_type_label(args[0])}]"
        if origin is dict and args:
            return f"dict[{_infer_type_label(args[0])}, {_infer_type_label(args[1])}]"
        if is_typeddict(expected_type):
            return "mapping"
        if isinstance(expected_type, type):
            return expected_type.__name__
        return str(expected_type)
    except Exception:  # noqa: BLE001
        return repr(expected_type)


def _type_error(
    val: Any,
    expected_type: Any,
    *,
    path: KeyPath,
    summary: ValidationSummary,
    field_examples: dict[str, str] | None,
) -> None:
    exp_label = _infer_type_label(expected_type)
    example = _get_example_for_field(".".join(path), field_examples)
    exmsg = f" (e.g. {example})" if example else ""
    key = path[-1] if path else None
    msg = (
        f"{format_path(path)}: expected {exp_label}{exmsg}, got {type(val).__name__}"
    )
    collect_msg(msg, path=path, summary=summary, key=key)


# ---------------------------------------------------------------------------
# granular schema validator helpers (private and testable)
# ---------------------------------------------------------------------------


def _validate_value(
    val: Any,
    expected_type: Any,
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Dispatch on the expected type: TypedDict, list, dict, union or scalar."""
    origin = get_origin(expected_type)
    args = get_args(expected_type)

    if is_typeddict(expected_type):
        return _validate_typed_dict(
            val,
            expected_type,
            path=path,
            summary=summary,
            field_examples=field_examples,
        )

    if origin in {Union, UnionType}:
        # first member whose outer shape fits decides, then validate deeply
        for member in args:
            if safe_isinstance(val, member) or (
                get_origin(member) is list and isinstance(val, list)
            ):
                return _validate_value(
                    val,
                    member,
                    path=path,
                    summary=summary,
                    field_examples=field_examples,
                )
        _type_error(
            val,
            expected_type,
            path=path,
            summary=summary,
            field_examples=field_examples,
        )
        return False

    if origin is list:
        return _validate_list_value(
            val,
            args[0] if args else Any,
            path=path,
            summary=summary,
            field_examples=field_examples,
        )

    if origin is dict:
        return _validate_mapping_value(
            val,
            args[1] if len(args) == 2 else Any,  # noqa: PLR2004
            path=path,
            summary=summary,
            field_examples=field_examples,
        )

    if safe_isinstance(val, expected_type):
        return True
    _type_error(
        val,
        expected_type,
        path=path,
        summary=summary,
        field_examples=field_examples,
    )
    return False


def _validate_list_value(
    val: Any,
    subtype: Any,
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Validate a homogeneous list value item by item."""
    if not isinstance(val, list):
        _type_error(
            val,
            list[subtype],  # type: ignore[valid-type]
            path=path,
            summary=summary,
            field_examples=field_examples,
        )
        return False

    items = cast_hint(list[Any], val)
    valid = True
    for i, item in enumerate(items):
        valid &= _validate_value(
            item,
            subtype,
            path=(*path, str(i)),
            summary=summary,
            field_examples=field_examples,
        )
    return valid


def _validate_mapping_value(
    val: Any,
    value_type: Any,
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Validate a `dict[str, X]` value: string keys, each value an X."""
    if not isinstance(val, dict):
        _type_error(
            val,
            dict[str, value_type],  # type: ignore[valid-type]
            path=path,
            summary=summary,
            field_examples=field_examples,
        )
        return False

    valid = True
    for k, v in cast_hint(dict[Any, Any], val).items():
        if not isinstance(k, str):
            collect_msg(
                f"{format_path(path)}: keys must be strings, got {k!r}",
                path=path,
                summary=summary,
                key=str(k),
            )
            valid = False
            continue
        valid &= _validate_value(
            v,
            value_type,
            path=(*path, k),
            summary=summary,
            field_examples=field_examples,
        )
    return valid


def _dict_unknown_keys(
    val: dict[str, Any],
    schema: dict[str, Any],
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
) -> bool:
    unknown: list[str] = [str(k) for k in val if k not in schema]
    if not unknown:
        return True

    for k in unknown:
        msg = (
            f"Unknown key `{k}` in {format_path(path)}."
            f"\nSupported keys are [{', '.join(schema)}]."
        )
        close = get_close_matches(k, schema.keys(), n=1, cutoff=DEFAULT_HINT_CUTOFF)
        if close:
            msg += f"\nHint: did you mean '{close[0]}'?"
        collect_msg(msg, path=(*path, k), summary=summary, key=k)
    return False


def _dict_missing_keys(
    val: dict[str, Any],
    required: frozenset[str],
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
) -> bool:
    missing = sorted(k for k in required if k not in val)
    if not missing:
        return True
    collect_msg(
        f"Missing required key{plural(missing)} {join_keys(missing)}"
        f" in {format_path(path)}.",
        path=path,
        summary=summary,
        key=missing[0],
    )
    return False


def _validate_typed_dict(
    val: Any,
    typedict_cls: type[Any],
    *,
    path: KeyPath,
    summary: ValidationSummary,  # modified in function, not returned
    ignore_keys: set[str] | None = None,
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Validate a dict against a TypedDict schema recursively.

    - Return False if val is not a dict
    - Recurse into its fields
    - Reject unknown keys and report missing required keys
    """
    if ignore_keys is None:
        ignore_keys = set()

    if not isinstance(val, dict):
        collect_msg(
            f"{format_path(path)}: expected a mapping with named keys,"
            f" got {type(val).__name__}",
            path=path,
            summary=summary,
            key=path[-1] if path else None,
        )
        return False

    if not hasattr(typedict_cls, "__annotations__"):
        xmsg = (
            "Internal schema invariant violated: "
            f"{typedict_cls!r} has no __annotations__."
        )
        raise AssertionError(xmsg)

    val_dict = cast_hint(dict[str, Any], val)
    schema = schema_from_typeddict(typedict_cls)
    valid = True

    for field_name, expected_type in schema.items():
        if field_name not in val_dict or field_name in ignore_keys:
            continue
        valid &= _validate_value(
            val_dict[field_name],
            expected_type,
            path=(*path, field_name),
            summary=summary,
            field_examples=field_examples,
        )

    valid &= _dict_unknown_keys(val_dict, schema, path=path, summary=summary)
    valid &= _dict_missing_keys(
        val_dict, required_keys(typedict_cls), path=path, summary=summary
    )
    return valid


# ---------------------------------------------------------------------------
# granular schema validator
# ---------------------------------------------------------------------------


def check_schema_conformance(
    cfg: dict[str, Any],
    typedict_cls: type[Any],
    *,
    summary: ValidationSummary,  # modified in function, not returned
    path: KeyPath = (),
    ignore_keys: set[str] | None = None,
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Thin wrapper around _validate_typed_dict for document-level checks."""
    return _validate_typed_dict(
        cfg,
        typedict_cls,
        path=path,
        summary=summary,
        ignore_keys=ignore_keys,
        field_examples=field_examples,
    )
