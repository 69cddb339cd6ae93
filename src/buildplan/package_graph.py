# src/buildplan/package_graph.py
"""Workspace package graph: discovery, cycle-tolerant ordering, dependents."""

from __future__ import annotations

import os
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from .constants import DEFAULT_PACKAGES_DIR, MANIFEST_FILE, PACKAGE_MAP_FILE
from .errors import ConfigParseError, MissingPackageError, SourceLocation
from .logs import get_app_logger
from .utils import YamlSyntaxError, load_yaml_file


T = TypeVar("T")


@dataclass(frozen=True)
class PackageNode:
    name: str
    path: Path  # relative to the workspace root when possible
    dependencies: tuple[str, ...] = ()


# --------------------------------------------------------------------------- #
# strongly connected components
# --------------------------------------------------------------------------- #


def strongly_connected_components(
    roots: Iterable[T],
    key: Callable[[T], Hashable],
    edges: Callable[[T], Iterable[T]],
) -> list[list[T]]:
    """Tarjan's algorithm, iterative, seeded at `roots`.

    Components come out leaf-first: a component is emitted only after every
    component it has edges into. Only nodes reachable from `roots` appear.
    """
    counter = 0
    indices: dict[Hashable, int] = {}
    lowlinks: dict[Hashable, int] = {}
    on_stack: set[Hashable] = set()
    stack: list[T] = []
    result: list[list[T]] = []

    def _visit(node: T) -> None:
        nonlocal counter
        k = key(node)
        indices[k] = lowlinks[k] = counter
        counter += 1
        stack.append(node)
        on_stack.add(k)

    for root in roots:
        if key(root) in indices:
            continue
        _visit(root)
        work: list[tuple[T, Any]] = [(root, iter(edges(root)))]
        while work:
            node, children = work[-1]
            nk = key(node)
            descended = False
            for child in children:
                ck = key(child)
                if ck not in indices:
                    _visit(child)
                    work.append((child, iter(edges(child))))
                    descended = True
                    break
                if ck in on_stack:
                    lowlinks[nk] = min(lowlinks[nk], indices[ck])
            if descended:
                continue

            work.pop()
            if work:
                pk = key(work[-1][0])
                lowlinks[pk] = min(lowlinks[pk], lowlinks[nk])

            if lowlinks[nk] == indices[nk]:
                component: list[T] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(key(member))
                    component.append(member)
                    if key(member) == nk:
                        break
                result.append(component)

    return result


# --------------------------------------------------------------------------- #
# graph
# --------------------------------------------------------------------------- #


class PackageGraph:
    """The packages reachable from a root, keyed by name."""

    def __init__(
        self,
        root: str,
        nodes: Mapping[str, PackageNode],
        *,
        root_dir: Path | None = None,
    ) -> None:
        if root not in nodes:
            raise MissingPackageError(root, detail="root package is not a node")
        self.root_dir = (root_dir or Path()).resolve()

        # keep only what the root reaches; fail on dangling names
        reachable: dict[str, PackageNode] = {}
        pending = [root]
        while pending:
            name = pending.pop()
            if name in reachable:
                continue
            node = nodes[name]
            reachable[name] = node
            for dep in node.dependencies:
                if dep not in nodes:
                    raise MissingPackageError(dep, required_by=name)
                if dep not in reachable:
                    pending.append(dep)

        self.root: PackageNode = nodes[root]
        self._nodes = reachable
        self._components: list[list[PackageNode]] | None = None
        self._positions: dict[str, int] | None = None

    # --- construction ---

    @classmethod
    def from_nodes(
        cls,
        root: str,
        nodes: Iterable[PackageNode],
        *,
        root_dir: Path | None = None,
    ) -> PackageGraph:
        by_name: dict[str, PackageNode] = {}
        for node in nodes:
            if node.name in by_name and by_name[node.name] != node:
                xmsg = f"Package `{node.name}` is declared twice with different data"
                raise ValueError(xmsg)
            by_name[node.name] = node
        return cls(root, by_name, root_dir=root_dir)

    @classmethod
    def for_workspace(
        cls,
        root_dir: Path | str,
        *,
        package_paths: Mapping[str, Path | str] | None = None,
    ) -> PackageGraph:
        """Discover the graph from `package.yaml` manifests on disk."""
        return _discover(Path(root_dir).resolve(), package_paths or {})

    # --- queries ---

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __getitem__(self, name: str) -> PackageNode:
        return self._nodes[name]

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def all_packages(self) -> dict[str, PackageNode]:
        return dict(self._nodes)

    def package_dir(self, name: str) -> Path:
        return self.root_dir / self._nodes[name].path

    def components(self) -> list[list[PackageNode]]:
        if self._components is None:
            self._components = strongly_connected_components(
                [self.root],
                lambda n: n.name,
                lambda n: [self._nodes[d] for d in n.dependencies],
            )
            cycles = [c for c in self._components if len(c) > 1]
            if cycles:
                logger = get_app_logger()
                for c in cycles:
                    logger.debug(
                        "Packages depend on each other: %s",
                        ", ".join(n.name for n in c),
                    )
        return self._components

    def ordered_packages(self) -> list[PackageNode]:
        """All packages, dependencies before dependents."""
        return [node for component in self.components() for node in component]

    def position(self, name: str) -> int:
        if self._positions is None:
            self._positions = {
                n.name: i for i, n in enumerate(self.ordered_packages())
            }
        return self._positions[name]

    def dependents_of(self, name: str) -> list[str]:
        """Packages that transitively depend on `name`, in graph order."""
        reverse: dict[str, list[str]] = {n: [] for n in self._nodes}
        for node in self._nodes.values():
            for dep in node.dependencies:
                reverse[dep].append(node.name)

        seen: set[str] = set()
        pending = list(reverse[name])
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(reverse[current])

        seen.discard(name)
        return [n.name for n in self.ordered_packages() if n.name in seen]


# --------------------------------------------------------------------------- #
# discovery
# --------------------------------------------------------------------------- #


def read_package_map(root_dir: Path) -> dict[str, Path]:
    """Read `.packages` (lines of `name:path`, `#` comments) if present."""
    map_file = root_dir / PACKAGE_MAP_FILE
    if not map_file.is_file():
        return {}

    try:
        text = map_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        xmsg = f"Package map is not UTF-8 text (bad byte at offset {e.start})"
        raise ConfigParseError(xmsg, location=SourceLocation(str(map_file))) from e

    entries: dict[str, Path] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        name, sep, location = line.partition(":")
        if not sep or not name.strip() or not location.strip():
            xmsg = f"Expected `name:path`, got {raw!r}"
            raise ConfigParseError(
                xmsg, location=SourceLocation(str(map_file), lineno, 1)
            )
        entries[name.strip()] = Path(location.strip())
    return entries


def _names_from(value: Any, *, field: str, manifest: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, dict):
        value = list(value)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        xmsg = f"`{field}` must be a list of package names or a mapping"
        raise ConfigParseError(
            xmsg, location=SourceLocation(str(manifest)), key=field
        )
    return tuple(value)


def read_manifest(package_dir: Path, *, include_dev: bool = False) -> tuple[str, tuple[str, ...]]:
    """Return `(name, dependencies)` from a package's `package.yaml`."""
    manifest = package_dir / MANIFEST_FILE
    if not manifest.is_file():
        raise FileNotFoundError(manifest)

    try:
        doc = load_yaml_file(manifest)
    except YamlSyntaxError as e:
        pos = e.position
        raise ConfigParseError(
            str(e),
            location=SourceLocation(
                str(manifest),
                pos.line if pos else None,
                pos.column if pos else None,
            ),
        ) from e

    data = doc.data
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        xmsg = "Package manifest must be a mapping with a string `name`"
        raise ConfigParseError(xmsg, location=SourceLocation(str(manifest)), key="name")

    deps = _names_from(data.get("dependencies"), field="dependencies", manifest=manifest)
    if include_dev:
        dev = _names_from(
            data.get("dev_dependencies"), field="dev_dependencies", manifest=manifest
        )
        deps = deps + tuple(d for d in dev if d not in deps)
    return data["name"], deps


def _relative(path: Path, root_dir: Path) -> Path:
    try:
        return path.relative_to(root_dir)
    except ValueError:
        return Path(os.path.relpath(path, root_dir))


def _discover(
    root_dir: Path,
    package_paths: Mapping[str, Path | str],
) -> PackageGraph:
    logger = get_app_logger()
    package_map = read_package_map(root_dir)

    def _locate(name: str) -> Path | None:
        if name in package_paths:
            return (root_dir / Path(package_paths[name])).resolve()
        if name in package_map:
            return (root_dir / package_map[name]).resolve()
        candidate = root_dir / DEFAULT_PACKAGES_DIR / name
        if candidate.is_dir():
            return candidate.resolve()
        return None

    root_name, root_deps = read_manifest(root_dir, include_dev=True)
    logger.trace(f"[discover] Root package `{root_name}` at {root_dir}")

    nodes: dict[str, PackageNode] = {
        root_name: PackageNode(root_name, Path(), root_deps)
    }
    pending: list[tuple[str, str]] = [(d, root_name) for d in reversed(root_deps)]
    while pending:
        name, required_by = pending.pop()
        if name in nodes:
            continue
        location = _locate(name)
        if location is None:
            raise MissingPackageError(
                name, required_by=required_by, detail="no known location"
            )
        try:
            declared, deps = read_manifest(location)
        except FileNotFoundError as e:
            raise MissingPackageError(
                name,
                required_by=required_by,
                detail=f"no {MANIFEST_FILE} in {location}",
            ) from e
        if declared != name:
            xmsg = f"Expected package `{name}` but the manifest declares `{declared}`"
            raise ConfigParseError(
                xmsg,
                location=SourceLocation(str(location / MANIFEST_FILE)),
                key="name",
            )
        logger.trace(f"[discover] Found `{name}` at {location}")
        nodes[name] = PackageNode(name, _relative(location, root_dir), deps)
        pending.extend((d, name) for d in reversed(deps) if d not in nodes)

    logger.debug("Discovered %d package(s) from %s", len(nodes), root_name)
    return PackageGraph(root_name, nodes, root_dir=root_dir)
