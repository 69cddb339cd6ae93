# tests/utils/patch_everywhere.py

import sys
from collections.abc import Callable
from types import ModuleType
from typing import Any

import pytest

import buildplan.meta as mod_meta

from .test_trace import TEST_TRACE


def patch_everywhere(
    mp: pytest.MonkeyPatch,
    mod_env: ModuleType | Any,
    func_name: str,
    replacement_func: Callable[..., object],
) -> None:
    """Replace a function everywhere it was imported.

    Walks sys.modules once and patches the defining module plus every
    project module that imported the same function object by name.
    """
    func = getattr(mod_env, func_name, None)
    if func is None:
        xmsg = f"Could not find {func_name!r} on {mod_env!r}"
        raise TypeError(xmsg)

    mod_name = getattr(mod_env, "__name__", type(mod_env).__name__)

    mp.setattr(mod_env, func_name, replacement_func)
    TEST_TRACE(f"Patched {mod_name}.{func_name}")

    package_prefix = mod_meta.PROGRAM_PACKAGE
    patched_ids: set[int] = set()

    for m in list(sys.modules.values()):
        if (
            m is mod_env
            or not isinstance(m, ModuleType)  # pyright: ignore[reportUnnecessaryIsInstance]
            or not hasattr(m, "__dict__")
        ):
            continue

        # skip stdlib and third-party modules
        name = getattr(m, "__name__", "")
        if not name.startswith(package_prefix):
            continue

        did_patch = False
        for k, v in list(m.__dict__.items()):
            if v is func:
                mp.setattr(m, k, replacement_func)
                did_patch = True

        if did_patch and id(m) not in patched_ids:
            path = getattr(m, "__file__", None) or "n/a"
            TEST_TRACE(f"  also patched {name} (path={path})")
            patched_ids.add(id(m))
