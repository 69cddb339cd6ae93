# src/buildplan/utils/utils_yaml.py
"""YAML loading that keeps source positions for every mapping key."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


KeyPath = tuple[str, ...]


@dataclass(frozen=True)
class Position:
    line: int  # 1-based
    column: int  # 1-based

    @classmethod
    def from_mark(cls, mark: Any) -> "Position":
        return cls(line=mark.line + 1, column=mark.column + 1)


@dataclass
class YamlDocument:
    """A loaded YAML document plus the position of each key path."""

    data: Any
    positions: dict[KeyPath, Position] = field(default_factory=dict)
    # (path, first position, second position) for keys repeated in one mapping
    duplicates: list[tuple[KeyPath, Position, Position]] = field(
        default_factory=list
    )

    def position_of(self, path: KeyPath) -> Position | None:
        """Return the closest known position for `path`, walking up parents."""
        while path:
            if path in self.positions:
                return self.positions[path]
            path = path[:-1]
        return self.positions.get(())


class YamlSyntaxError(ValueError):
    """Raised for malformed YAML, carrying the problem position."""

    def __init__(self, message: str, position: Position | None) -> None:
        super().__init__(message)
        self.position = position


def _index_positions(
    node: yaml.Node,
    path: KeyPath,
    doc: YamlDocument,  # modified
) -> None:
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            key = str(key_node.value)
            child = (*path, key)
            pos = Position.from_mark(key_node.start_mark)
            if child in doc.positions:
                doc.duplicates.append((child, doc.positions[child], pos))
            else:
                doc.positions[child] = pos
            _index_positions(value_node, child, doc)
    elif isinstance(node, yaml.SequenceNode):
        for i, item in enumerate(node.value):
            child = (*path, str(i))
            doc.positions[child] = Position.from_mark(item.start_mark)
            _index_positions(item, child, doc)


def load_yaml_document(text: str) -> YamlDocument:
    """Parse YAML text with the safe loader, recording key positions.

    Raises:
        YamlSyntaxError: If the text is not valid YAML.
    """
    loader = yaml.SafeLoader(text)
    try:
        node = loader.get_single_node()
        if node is None:
            return YamlDocument(data=None)
        data = loader.construct_document(node)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        position = Position.from_mark(mark) if mark is not None else None
        problem = e.problem or str(e)
        raise YamlSyntaxError(f"Invalid YAML: {problem}", position) from e
    except yaml.YAMLError as e:
        raise YamlSyntaxError(f"Invalid YAML: {e}", None) from e
    finally:
        loader.dispose()

    doc = YamlDocument(data=data, positions={(): Position.from_mark(node.start_mark)})
    _index_positions(node, (), doc)
    return doc


def read_yaml_text(path: Path) -> str:
    """Read a YAML file as UTF-8.

    Raises:
        YamlSyntaxError: If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        xmsg = f"Invalid YAML: not UTF-8 text (bad byte at offset {e.start})"
        raise YamlSyntaxError(xmsg, None) from e


def load_yaml_file(path: Path) -> YamlDocument:
    return load_yaml_document(read_yaml_text(path))
