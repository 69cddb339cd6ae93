# tests/50_core/test_validate_build_config.py
"""Tests for validate_build_config(): unknown keys, types, required keys."""

from typing import Any

import buildplan.config.config_validate as mod_config_validate


def _builder(**extra: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {"import": "pkg.builders", "builder_factories": ["make"]}
    entry.update(extra)
    return entry


def test_valid_config_passes() -> None:
    # --- setup ---
    cfg = {
        "builders": {
            "gen": _builder(
                auto_apply="dependents",
                build_to="source",
                build_extensions={".py": [".g.py"]},
                defaults={"generate_for": ["lib/**"], "options": {"x": 1}},
            )
        },
        "post_process_builders": {"clean": _builder(input_extensions=[".tmp"])},
        "targets": {
            "$default": {
                "dependencies": ["other"],
                "sources": {"include": ["lib/**"], "exclude": ["lib/skip/**"]},
                "builders": {"gen": {"enabled": True}, ":local": None},
            }
        },
    }

    # --- execute ---
    summary = mod_config_validate.validate_build_config(cfg)

    # --- verify ---
    assert summary.valid, summary.messages()
    assert summary.errors == []


def test_unknown_top_level_key_with_hint() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config({"builder": {}})

    # --- verify ---
    assert not summary.valid
    msg = summary.errors[0].msg
    assert "Unknown key `builder`" in msg
    assert "Supported keys are [builders, post_process_builders, targets]" in msg
    assert "did you mean 'builders'" in msg
    assert summary.errors[0].path == ("builder",)


def test_unknown_nested_key() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config(
        {"builders": {"gen": _builder(auto_aply="none")}}
    )

    # --- verify ---
    assert not summary.valid
    issue = summary.errors[0]
    assert issue.key == "auto_aply"
    assert issue.path == ("builders", "gen", "auto_aply")
    assert "did you mean 'auto_apply'" in issue.msg


def test_missing_required_builder_keys() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config({"builders": {"gen": {}}})

    # --- verify ---
    assert not summary.valid
    assert any(
        "Missing required keys `builder_factories`, `import`" in m
        for m in summary.messages()
    )


def test_wrong_value_type_mentions_example() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config(
        {"builders": {"gen": _builder(builder_factories="make")}}
    )

    # --- verify ---
    assert not summary.valid
    msg = summary.errors[0].msg
    assert "builders.gen.builder_factories" in msg
    assert "expected list[str]" in msg
    assert '["json_builder"]' in msg


def test_invalid_build_to_value() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config(
        {"builders": {"gen": _builder(build_to="disk")}}
    )

    # --- verify ---
    assert not summary.valid
    assert summary.errors[0].path == ("builders", "gen", "build_to")


def test_empty_builder_factories() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config(
        {"builders": {"gen": _builder(builder_factories=[])}}
    )

    # --- verify ---
    assert not summary.valid
    assert "must not be empty" in summary.errors[0].msg


def test_top_level_must_be_mapping() -> None:
    # --- execute ---
    summary = mod_config_validate.validate_build_config(["builders"])

    # --- verify ---
    assert not summary.valid
    assert "Expected a mapping at the top level" in summary.errors[0].msg


def test_unknown_auto_apply_is_left_for_parser() -> None:
    """The schema takes any string so the parser can raise the named error."""
    # --- execute ---
    summary = mod_config_validate.validate_build_config(
        {"builders": {"gen": _builder(auto_apply="sometimes")}}
    )

    # --- verify ---
    assert summary.valid
