# src/buildplan/ordering.py
"""Order builder definitions by their "runs after" relationships."""

import graphlib
import heapq
from collections.abc import Sequence
from typing import TypeVar

from .config import BuilderDefinition
from .errors import CyclicBuilderOrderError
from .logs import get_app_logger


D = TypeVar("D", bound=BuilderDefinition)


def _produces_required_input(producer: BuilderDefinition, consumer: BuilderDefinition) -> bool:
    return any(
        output.endswith(required)
        for output in producer.output_extensions
        for required in consumer.required_inputs
    )


def runs_after_edges(definitions: Sequence[BuilderDefinition]) -> dict[str, set[str]]:
    """Map each builder key to the keys it must run after.

    A builder runs after every other builder whose outputs end with one of
    its `required_inputs`, and after every builder that lists it in
    `runs_before`.
    """
    logger = get_app_logger()
    keys = {d.key for d in definitions}
    edges: dict[str, set[str]] = {d.key: set() for d in definitions}

    for consumer in definitions:
        if not consumer.required_inputs:
            continue
        for producer in definitions:
            if producer.key != consumer.key and _produces_required_input(
                producer, consumer
            ):
                edges[consumer.key].add(producer.key)

    for builder in definitions:
        for later in builder.runs_before:
            if later not in keys:
                logger.warning(
                    "Builder `%s` runs before `%s`, which is not part of this"
                    " build; ignoring.",
                    builder.key,
                    later,
                )
                continue
            if later != builder.key:
                edges[later].add(builder.key)

    return edges


def find_builder_order(definitions: Sequence[D]) -> list[D]:
    """Stable topological sort of `definitions`.

    Among builders whose predecessors have all been placed, the one that
    comes first in `definitions` goes next, so without edges the input order
    is kept.

    Raises:
        CyclicBuilderOrderError: If the "runs after" edges form a cycle.
    """
    logger = get_app_logger()
    index = {d.key: i for i, d in enumerate(definitions)}
    by_key = {d.key: d for d in definitions}
    edges = runs_after_edges(definitions)

    sorter = graphlib.TopologicalSorter(edges)
    try:
        sorter.prepare()
    except graphlib.CycleError as e:
        members = list(e.args[1]) if len(e.args) > 1 else sorted(edges)
        raise CyclicBuilderOrderError(members) from e

    ready: list[tuple[int, str]] = []
    ordered: list[D] = []
    while sorter.is_active():
        for key in sorter.get_ready():
            heapq.heappush(ready, (index[key], key))
        _, key = heapq.heappop(ready)
        ordered.append(by_key[key])
        sorter.done(key)

    logger.trace(
        f"[find_builder_order] {' -> '.join(d.key for d in ordered) or '(none)'}"
    )
    return ordered
