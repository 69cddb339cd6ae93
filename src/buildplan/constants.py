# src/buildplan/constants.py
"""Central constants used across the project."""


# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_JOBS: str = "JOBS"

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_OUTPUT_FORMAT: str = "json"
# None lets ThreadPoolExecutor pick its own worker count
DEFAULT_JOBS: int | None = None

# --- workspace layout ---
MANIFEST_FILE: str = "package.yaml"
BUILD_CONFIG_FILE: str = "build.yaml"
OVERRIDE_SUFFIX: str = ".build.yaml"
PACKAGE_MAP_FILE: str = ".packages"
DEFAULT_PACKAGES_DIR: str = "packages"

# --- config defaults ---
DEFAULT_KEY: str = "$default"
DEFAULT_AUTO_APPLY: str = "none"
DEFAULT_BUILD_TO: str = "cache"
DEFAULT_IS_OPTIONAL: bool = False
