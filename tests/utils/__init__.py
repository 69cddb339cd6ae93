# tests/utils/__init__.py

from .constants import DEFAULT_TEST_LOG_LEVEL, PROJ_ROOT
from .patch_everywhere import patch_everywhere
from .test_trace import TEST_TRACE, make_test_trace
from .workspace import (
    make_build_config,
    make_builder,
    make_context,
    make_graph,
    make_workspace,
    write_package,
)


__all__ = [  # noqa: RUF022
    # constants
    "DEFAULT_TEST_LOG_LEVEL",
    "PROJ_ROOT",
    # patch_everywhere
    "patch_everywhere",
    # test_trace
    "TEST_TRACE",
    "make_test_trace",
    # workspace
    "make_build_config",
    "make_builder",
    "make_context",
    "make_graph",
    "make_workspace",
    "write_package",
]
