from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from schemaevo.core.actions.models import ItemSpec
from schemaevo.core.actions.validation import ValidatedContainer
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import RegisteredVersion, VersionRegistry

from .neighbors import OrderedMap
from .status import (
    Added,
    Changed,
    Deprecated,
    ItemStatus,
    NoChange,
    NotPresent,
    Renamed,
)

log = logging.getLogger("schemaevo.chain")


class ItemChain:
    """Version → status map for one item.

    An item without actions has no explicit statuses: it is present under its
    declared name and type in every version.
    """

    def __init__(self, item: ItemSpec, kind: ContainerKind, statuses: Optional[OrderedMap[ItemStatus]] = None):
        self.item = item
        self.kind = kind
        self._statuses = statuses
        self._registry: Optional[VersionRegistry] = None

    @property
    def declared_name(self) -> str:
        return self.item.name

    @property
    def versioned(self) -> bool:
        return self._statuses is not None

    def explicit_statuses(self) -> List[Tuple[int, ItemStatus]]:
        return self._statuses.items() if self._statuses is not None else []

    def insert_container_versions(self, registry: VersionRegistry) -> None:
        """Fills every declared version missing from the chain by neighbour propagation."""

        self._registry = registry
        statuses = self._statuses
        if statuses is None:
            return

        for version in registry:
            if version.rank in statuses:
                continue
            statuses.insert(version.rank, self._propagate(statuses, version))

    def _propagate(self, statuses: OrderedMap[ItemStatus], version: RegisteredVersion) -> ItemStatus:
        lo, hi = statuses.neighbors(version.rank)

        if lo is None and hi is None:
            raise RuntimeError(f"internal error: chain for {self.declared_name!r} has no statuses")

        if lo is None:
            if isinstance(hi, Added):
                return NotPresent()
            pred = hi.predecessor()
            if pred is None:
                raise RuntimeError(
                    f"internal error: {self.declared_name!r} cannot propagate backwards from {hi.status}"
                )
            name, ty = pred
            return NoChange(name=name, type=ty)

        if isinstance(lo, NotPresent):
            return NotPresent()
        if isinstance(lo, Deprecated):
            return NoChange(name=lo.name, type=lo.type, previously_deprecated=True, note=lo.note)
        if isinstance(lo, NoChange):
            return NoChange(name=lo.name, type=lo.type, previously_deprecated=lo.previously_deprecated, note=lo.note)
        return NoChange(name=lo.name, type=lo.type)

    def status_at(self, version: RegisteredVersion) -> ItemStatus:
        if self._statuses is None:
            return NoChange(name=self.item.name, type=self.item.type)

        status = self._statuses.get(version.rank)
        if status is None:
            raise RuntimeError(f"internal error: chain must contain version {version.name}")
        return status

    def statuses(self, registry: Optional[VersionRegistry] = None) -> List[Tuple[RegisteredVersion, ItemStatus]]:
        reg = registry or self._registry
        if reg is None:
            raise RuntimeError("internal error: chain has not been filled with container versions")
        return [(v, self.status_at(v)) for v in reg]


def build_chain(item: ItemSpec, kind: ContainerKind, registry: VersionRegistry) -> ItemChain:
    """Builds the sparse chain of explicit statuses for one item.

    Actions are walked from the newest effect to the oldest, because the
    declared name and type describe the latest version only.
    """

    if not item.has_actions:
        return ItemChain(item, kind, None)

    statuses: OrderedMap[ItemStatus] = OrderedMap()
    name = item.name
    ty = item.type

    if item.deprecated is not None:
        name = kind.strip_deprecated_prefix(item.name)
        statuses.insert(
            registry.rank(item.deprecated.since),
            Deprecated(previous_name=name, name=item.name, type=ty, note=item.deprecated.note),
        )

    for change in sorted(item.changes, key=lambda c: registry.rank(c.since), reverse=True):
        from_name = change.from_name or name
        from_type = change.from_type if change.from_type is not None else ty

        if from_type == ty:
            status: ItemStatus = Renamed(from_name=from_name, to_name=name, type=ty)
        else:
            status = Changed(
                from_name=from_name,
                from_type=from_type,
                to_name=name,
                to_type=ty,
                upgrade_with=change.upgrade_with,
                downgrade_with=change.downgrade_with,
            )
        statuses.insert(registry.rank(change.since), status)
        name, ty = from_name, from_type

    if item.added is not None:
        statuses.insert(
            registry.rank(item.added.since),
            Added(
                name=name,
                type=ty,
                default=item.added.default,
                default_value=item.added.default_value,
                has_default_value=item.added.has_default_value,
                downgrade_fallback=item.added.downgrade_fallback,
            ),
        )

    return ItemChain(item, kind, statuses)


def build_item_chains(container: ValidatedContainer) -> List[ItemChain]:
    chains: List[ItemChain] = []
    for item in container.spec.items:
        chain = build_chain(item, container.kind, container.registry)
        chain.insert_container_versions(container.registry)
        chains.append(chain)

    log.debug(
        "built %d chains for %s (%d versioned)",
        len(chains),
        container.name,
        sum(1 for c in chains if c.versioned),
    )
    return chains
