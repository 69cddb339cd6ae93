# tests/50_core/test_find_builder_order.py
"""Tests for the stable topological builder order."""

import pytest

import buildplan.errors as mod_errors
import buildplan.logs as mod_logs
import buildplan.ordering as mod_ordering
from tests.utils import make_builder


def _keys(definitions: list[mod_ordering.BuilderDefinition]) -> list[str]:
    return [d.key for d in definitions]


def test_no_edges_keeps_input_order() -> None:
    # --- setup ---
    builders = [make_builder("a:x"), make_builder("b:y"), make_builder("c:z")]

    # --- execute + verify ---
    assert _keys(mod_ordering.find_builder_order(builders)) == ["a:x", "b:y", "c:z"]


def test_required_inputs_move_consumer_after_producer() -> None:
    # --- setup ---
    consumer = make_builder("a:consume", required_inputs=(".g.json",))
    other = make_builder("a:other")
    producer = make_builder("b:produce", build_extensions={".yaml": (".g.json",)})

    # --- execute ---
    order = _keys(mod_ordering.find_builder_order([consumer, other, producer]))

    # --- verify ---
    assert order == ["a:other", "b:produce", "a:consume"]


def test_required_input_matches_suffix() -> None:
    # --- setup ---
    consumer = make_builder("a:consume", required_inputs=(".json",))
    producer = make_builder("b:produce", build_extensions={".py": (".g.json",)})

    # --- execute + verify ---
    assert _keys(mod_ordering.find_builder_order([consumer, producer])) == [
        "b:produce",
        "a:consume",
    ]


def test_runs_before_edge() -> None:
    # --- setup ---
    first = make_builder("a:first")
    second = make_builder("b:second", runs_before=("a:first",))

    # --- execute + verify ---
    assert _keys(mod_ordering.find_builder_order([first, second])) == [
        "b:second",
        "a:first",
    ]


def test_runs_before_unknown_key_is_ignored_with_warning(
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    builder = make_builder("a:x", runs_before=("zzz:zzz",))

    # --- execute ---
    order = mod_ordering.find_builder_order([builder])

    # --- verify ---
    assert _keys(order) == ["a:x"]
    assert "zzz:zzz" in capsys.readouterr().err


def test_ties_pick_earliest_input() -> None:
    """Once a blocker is placed, earlier inputs still win over later ones."""
    # --- setup ---
    blocked = make_builder("a:blocked", required_inputs=(".p",))
    free_late = make_builder("c:free")
    producer = make_builder("b:producer", build_extensions={".x": (".p",)})

    # --- execute ---
    order = _keys(mod_ordering.find_builder_order([producer, blocked, free_late]))

    # --- verify ---
    assert order == ["b:producer", "a:blocked", "c:free"]


def test_builder_does_not_depend_on_itself() -> None:
    # --- setup ---
    builder = make_builder(
        "a:self", required_inputs=(".g",), build_extensions={".x": (".g",)}
    )

    # --- execute + verify ---
    assert _keys(mod_ordering.find_builder_order([builder])) == ["a:self"]


def test_cycle_raises_with_members() -> None:
    # --- setup ---
    x = make_builder("a:x", runs_before=("b:y",))
    y = make_builder("b:y", runs_before=("a:x",))
    z = make_builder("c:z")

    # --- execute ---
    with pytest.raises(mod_errors.CyclicBuilderOrderError) as exc_info:
        mod_ordering.find_builder_order([x, y, z])

    # --- verify ---
    assert set(exc_info.value.members) >= {"a:x", "b:y"}
    assert "c:z" not in exc_info.value.members


def test_empty_sequence() -> None:
    # --- execute + verify ---
    assert mod_ordering.find_builder_order([]) == []


def test_runs_after_edges() -> None:
    # --- setup ---
    builders = [
        make_builder("a:x", build_extensions={".in": (".mid",)}),
        make_builder("b:y", required_inputs=(".mid",), runs_before=("a:x",)),
    ]

    # --- execute ---
    edges = mod_ordering.runs_after_edges(builders)

    # --- verify ---
    assert edges == {"a:x": {"b:y"}, "b:y": {"a:x"}}


def test_unknown_runs_before_warns_through_app_logger(
    module_logger: mod_logs.AppLogger,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    module_logger.setLevel("warning")
    builder = make_builder("a:x", runs_before=("zzz:zzz",))

    # --- execute ---
    mod_ordering.find_builder_order([builder])

    # --- verify ---
    assert mod_ordering.get_app_logger() is module_logger
    assert "not part of this build" in capsys.readouterr().err
