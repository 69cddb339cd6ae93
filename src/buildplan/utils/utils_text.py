# src/buildplan/utils/utils_text.py

from typing import Any


def plural(obj: Any) -> str:
    """Return 's' if obj represents a plural count.

    Accepts ints, floats, and any object implementing __len__().
    Returns '' for singular.
    """
    count: int | float
    try:
        count = len(obj)
    except TypeError:
        count = obj if isinstance(obj, (int, float)) else 0
    return "s" if count != 1 else ""


def join_keys(keys: Any) -> str:
    """Render keys as a backticked, comma-separated list."""
    return ", ".join(f"`{k}`" for k in keys)
