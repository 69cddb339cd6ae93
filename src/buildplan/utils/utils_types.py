# src/buildplan/utils/utils_types.py


from types import UnionType
from typing import (
    Any,
    Literal,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)

from typing_extensions import NotRequired, Required


T = TypeVar("T")


def cast_hint(typ: type[T], value: Any) -> T:  # noqa: ARG001
    """Explicit cast that documents intent but is purely for type hinting.

    Use it where a narrowing is intentional and `typing.cast` would read as
    noise. Does not handle Union or Optional: stick to cast() for those.

    This function performs *no runtime checks*.
    """
    return cast("T", value)


def schema_from_typeddict(td: type[Any]) -> dict[str, Any]:
    """Extract field names and their annotated types from a TypedDict."""
    return get_type_hints(td, include_extras=True)


def required_keys(td: type[Any]) -> frozenset[str]:
    """Return the keys a TypedDict marks as required."""
    return cast("frozenset[str]", getattr(td, "__required_keys__", frozenset()))


def literal_to_set(literal_type: Any) -> set[Any]:
    """Extract values from a Literal type as a set.

    Example:
        BuildTo = Literal["source", "cache"]
        literal_to_set(BuildTo)  # {"source", "cache"}

    Raises:
        TypeError: If the input is not a Literal type
    """
    origin = get_origin(literal_type)
    if origin is not Literal:
        msg = f"Expected Literal type, got {literal_type}"
        raise TypeError(msg)
    return set(get_args(literal_type))


def is_typeddict(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and hasattr(tp, "__annotations__")
        and hasattr(tp, "__total__")
    )


def _isinstance_generics(  # noqa: PLR0911
    value: Any,
    origin: Any,
    args: tuple[Any, ...],
) -> bool:
    if not isinstance(value, origin):
        return False

    if not args:
        return True

    # list[str]
    if origin is list and isinstance(value, list):
        subtype = args[0]
        items = cast_hint(list[Any], value)
        return all(safe_isinstance(v, subtype) for v in items)

    # dict[str, int]
    if origin is dict and isinstance(value, dict):
        key_t, val_t = args if len(args) == 2 else (Any, Any)  # noqa: PLR2004
        dct = cast_hint(dict[Any, Any], value)
        return all(
            safe_isinstance(k, key_t) and safe_isinstance(v, val_t)
            for k, v in dct.items()
        )

    return True  # e.g., other typing origins like set[], Iterable[]


def safe_isinstance(value: Any, expected_type: Any) -> bool:  # noqa: PLR0911
    """Like isinstance(), but safe for TypedDicts and typing generics.

    Handles:
      - typing.Union, Optional, Any
      - typing.NotRequired / Required
      - Literal values
      - TypedDict subclasses
      - list[...] and dict[...] with inner types
    """
    if expected_type is Any:
        return True

    origin = get_origin(expected_type)
    args = get_args(expected_type)

    if origin in {NotRequired, Required}:
        if args:
            return safe_isinstance(value, args[0])
        return True

    if origin is Literal:
        return value in args

    if origin in {Union, UnionType}:
        return any(safe_isinstance(value, t) for t in args)

    if is_typeddict(expected_type):
        return isinstance(value, dict)

    if origin:
        return _isinstance_generics(value, origin, args)

    # bool is an int subclass; YAML `true` must not pass as a number
    if expected_type in (int, float) and isinstance(value, bool):
        return False

    try:
        return isinstance(value, expected_type)
    except TypeError:
        return False
