# tests/utils/test_trace.py
"""Trace logger for pytest diagnostics.

Writes directly to sys.__stderr__ to bypass pytest's capture system, so
output is visible even during setup or import-time execution. Enable by
setting TEST_TRACE=1 (or 'true', 'yes').
"""

import builtins
import importlib
import os
import sys
from collections.abc import Callable
from typing import Any


TEST_TRACE_ENABLED = os.getenv("TEST_TRACE", "").lower() in {"1", "true", "yes"}

# avoids patched time modules
_real_time = importlib.import_module("time")


def make_test_trace(icon: str = "🧪") -> Callable[..., Any]:
    def local_trace(label: str, *args: Any) -> Any:
        return TEST_TRACE(label, *args, icon=icon)

    return local_trace


def TEST_TRACE(label: str, *args: Any, icon: str = "🧪") -> None:  # noqa: N802
    """Emit a flush-safe diagnostic line with a monotonic timestamp."""
    if not TEST_TRACE_ENABLED:
        return

    ts = _real_time.monotonic()
    builtins.print(
        f"{icon} [TEST TRACE {ts:.6f}] {label}",
        *args,
        file=sys.__stderr__,
        flush=True,
    )
