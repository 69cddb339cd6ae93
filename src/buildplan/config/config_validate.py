# src/buildplan/config/config_validate.py


from typing import Any

from buildplan.logs import get_app_logger
from buildplan.utils import (
    ValidationSummary,
    check_schema_conformance,
    collect_msg,
)

from .config_types import BuildYamlConfig


# --- constants ------------------------------------------------------

# Field-specific examples for better error messages
# Wildcard patterns (with *) match one key segment
FIELD_EXAMPLES: dict[str, str] = {
    "builders.*.import": '"my_pkg.builders"',
    "builders.*.builder_factories": '["json_builder"]',
    "builders.*.auto_apply": '"dependents"',
    "builders.*.build_to": '"cache"',
    "builders.*.build_extensions": '{".py": [".g.py"]}',
    "post_process_builders.*.import": '"my_pkg.builders"',
    "post_process_builders.*.builder_factories": '["cleanup"]',
    "targets.*.dependencies": '["other_pkg"]',
    "targets.*.sources": '["src/**"]',
}


# ---------------------------------------------------------------------------
# main validator
# ---------------------------------------------------------------------------


def _validate_builder_sections(
    parsed_cfg: dict[str, Any],
    *,
    summary: ValidationSummary,  # modified
) -> None:
    for section in ("builders", "post_process_builders"):
        entries = parsed_cfg.get(section)
        if not isinstance(entries, dict):
            continue
        for key, entry in entries.items():
            if not isinstance(entry, dict):
                continue
            factories = entry.get("builder_factories")
            if isinstance(factories, list) and not factories:
                collect_msg(
                    f"{section}.{key}: `builder_factories` must not be empty.",
                    path=(section, str(key), "builder_factories"),
                    summary=summary,
                    key="builder_factories",
                )


def validate_build_config(parsed_cfg: Any) -> ValidationSummary:
    """Validate a parsed `build.yaml` document.

    Unknown keys at any level are errors, as are wrong value types and
    missing required builder keys. auto_apply values are checked later
    so they can raise UnknownAutoApplyError.
    """
    logger = get_app_logger()
    summary = ValidationSummary()

    if not isinstance(parsed_cfg, dict):
        collect_msg(
            f"Expected a mapping at the top level, got {type(parsed_cfg).__name__}.",
            path=(),
            summary=summary,
        )
        return summary

    logger.trace(f"[validate_build_config] Validating {len(parsed_cfg)} top-level keys")
    check_schema_conformance(
        parsed_cfg,
        BuildYamlConfig,
        summary=summary,
        field_examples=FIELD_EXAMPLES,
    )
    _validate_builder_sections(parsed_cfg, summary=summary)
    return summary
