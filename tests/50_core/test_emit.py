# tests/50_core/test_emit.py
"""Tests for plan output adapters."""

import json

import pytest

import buildplan.emit as mod_emit
import buildplan.planner as mod_planner
from tests.utils import make_build_config, make_builder, make_graph


def _plan() -> mod_planner.BuildPlan:
    graph = make_graph("c", {"a": [], "b": ["a"], "c": ["a", "b"]})
    configs = [
        make_build_config("a"),
        make_build_config(
            "b",
            make_builder("b:gen", auto_apply="dependents", build_extensions={".py": (".g.py",)}),
            make_builder("b:tidy", post_process=True, input_extensions=(".g.py",)),
            dependencies=("a",),
        ),
        make_build_config("c", dependencies=("a", "b")),
    ]
    return mod_planner.build_plan(graph, configs)


def test_json_is_deterministic() -> None:
    # --- execute ---
    first = mod_emit.JsonPlanEmitter().emit(_plan())
    second = mod_emit.JsonPlanEmitter().emit(_plan())

    # --- verify ---
    assert first == second


def test_json_content() -> None:
    # --- execute ---
    data = json.loads(mod_emit.JsonPlanEmitter().emit(_plan()))

    # --- verify ---
    assert data["root_package"] == "c"
    assert data["package_order"] == ["a", "b", "c"]
    (gen,) = data["builder_applications"]
    assert gen["key"] == "b:gen"
    assert gen["apply_to"]["packages"] == ["c"]
    assert gen["factories"] == ["b.builders:build"]
    assert gen["build_extensions"] == {".py": [".g.py"]}
    (tidy,) = data["post_process_applications"]
    assert tidy["kind"] == "post_process_builder"
    assert tidy["input_extensions"] == [".g.py"]
    assert data["build_targets"]["c:c"]["dependencies"] == ["a:a", "b:b"]


def test_text_output() -> None:
    # --- execute ---
    text = mod_emit.TextPlanEmitter().emit(_plan())

    # --- verify ---
    assert "Package order: a, b, c" in text
    assert "  b:gen [hidden]" in text
    assert "applies to (dependents): c" in text
    assert "Post-process builders (1):" in text
    assert "  c:c (depends on: a:a, b:b)" in text


def test_get_emitter() -> None:
    # --- execute + verify ---
    assert isinstance(mod_emit.get_emitter("json"), mod_emit.JsonPlanEmitter)
    assert isinstance(mod_emit.get_emitter("text"), mod_emit.TextPlanEmitter)
    with pytest.raises(ValueError, match="Unknown output format 'yaml'"):
        mod_emit.get_emitter("yaml")
