from __future__ import annotations

from typing import Dict, List, Mapping, Tuple, Union

from schemaevo.core.errors import ConversionError
from schemaevo.core.versions.registry import RegisteredVersion, VersionRegistry

from .expressions import ConversionEdge

VersionRef = Union[str, RegisteredVersion]


def conversion_path(current: VersionRef, desired: VersionRef, registry: VersionRegistry) -> List[RegisteredVersion]:
    """Versions to step through to get from `current` to `desired`.

    The current version is excluded and the desired one included, so every
    element is the target of one adjacent edge:

    - equal versions: []
    - upgrade: ascending versions after `current`, up to `desired`
    - downgrade: the same range, descending
    """

    start = registry.rank(current)
    end = registry.rank(desired)

    if start == end:
        return []
    if start < end:
        return registry.slice(start + 1, end + 1)
    return list(reversed(registry.slice(end, start)))


def conversion_paths(registry: VersionRegistry) -> List[Tuple[RegisteredVersion, List[RegisteredVersion]]]:
    """The path of every ordered pair of distinct versions, n·(n-1) entries."""

    out: List[Tuple[RegisteredVersion, List[RegisteredVersion]]] = []
    for start in registry:
        for end in registry:
            if start.rank == end.rank:
                continue
            out.append((start, conversion_path(start, end, registry)))
    return out


def compose_edges(
    edges: Mapping[Tuple[str, str], ConversionEdge],
    current: VersionRef,
    desired: VersionRef,
    registry: VersionRegistry,
) -> List[ConversionEdge]:
    """The adjacent edges to apply, in order, for (current, desired)."""

    chain: List[ConversionEdge] = []
    prev = registry.get(current)
    for step in conversion_path(current, desired, registry):
        edge = edges.get((prev.name, step.name))
        if edge is None:
            raise ConversionError(
                f"no conversion was generated from {prev.name} to {step.name}",
                http_status_code=422,
            )
        chain.append(edge)
        prev = step
    return chain


def path_names(current: VersionRef, desired: VersionRef, registry: VersionRegistry) -> List[str]:
    return [v.name for v in conversion_path(current, desired, registry)]


def paths_table(registry: VersionRegistry) -> Dict[str, Dict[str, List[str]]]:
    table: Dict[str, Dict[str, List[str]]] = {}
    for start, path in conversion_paths(registry):
        table.setdefault(start.name, {})[path[-1].name] = [v.name for v in path]
    return table
