# tests/utils/constants.py

from pathlib import Path


PROJ_ROOT = Path(__file__).resolve().parent.parent.parent

# most verbose level, so failing tests show every trace line
DEFAULT_TEST_LOG_LEVEL = "trace"
