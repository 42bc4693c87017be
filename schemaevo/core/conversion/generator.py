from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from schemaevo.core.actions.validation import ValidatedContainer
from schemaevo.core.assembly.assembler import ContainerDefinition
from schemaevo.core.chain.builder import ItemChain
from schemaevo.core.chain.status import Added, Changed, ItemStatus
from schemaevo.core.errors import IrreversibleConversionError
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import RegisteredVersion

from .expressions import (
    ConversionEdge,
    CopyExpr,
    DefaultExpr,
    Direction,
    DroppedItem,
    Expression,
    FunctionExpr,
    NestedConvertExpr,
    VariantFallbackExpr,
    VariantMapExpr,
)

log = logging.getLogger("schemaevo.conversion")


def _carry(chain: ItemChain, source: str, target: str, from_type: Optional[str], to_type: Optional[str]) -> Expression:
    # Nested items hold another versioned container: their value follows the
    # same edge instead of being copied verbatim.
    if chain.item.nested:
        return NestedConvertExpr(
            item=chain.declared_name,
            source=source,
            target=target,
            from_type=from_type,
            to_type=to_type,
            hint=chain.item.hint,
        )
    return CopyExpr(item=chain.declared_name, source=source, target=target)


def _field_upgrade(chain: ItemChain, old: ItemStatus, new: ItemStatus) -> Optional[Expression]:
    item = chain.declared_name

    if not new.present:
        return None

    if isinstance(new, Added):
        return DefaultExpr(
            item=item,
            target=new.name,
            type=new.type,
            supplier=new.default,
            value=new.default_value,
            has_value=new.has_default_value,
        )

    if isinstance(new, Changed):
        if not new.type_changed:
            return _carry(chain, old.name, new.to_name, new.from_type, new.to_type)
        if new.upgrade_with:
            return FunctionExpr(item=item, source=old.name, target=new.to_name, function=new.upgrade_with)
        return NestedConvertExpr(
            item=item,
            source=old.name,
            target=new.to_name,
            from_type=new.from_type,
            to_type=new.to_type,
            hint=chain.item.hint,
        )

    return _carry(chain, old.name, new.name, old.type, new.type)


def _field_downgrade(chain: ItemChain, old: ItemStatus, new: ItemStatus) -> Tuple[Optional[Expression], Optional[DroppedItem]]:
    item = chain.declared_name

    if not old.present:
        # Present only in the newer version: the older one has no slot for it.
        if new.present:
            return None, DroppedItem(item=item, source=new.name)
        return None, None

    if isinstance(new, Changed):
        if not new.type_changed:
            return _carry(chain, new.to_name, old.name, new.to_type, new.from_type), None
        if new.downgrade_with:
            return FunctionExpr(item=item, source=new.to_name, target=old.name, function=new.downgrade_with), None
        return (
            NestedConvertExpr(
                item=item,
                source=new.to_name,
                target=old.name,
                from_type=new.to_type,
                to_type=new.from_type,
                hint=chain.item.hint,
            ),
            None,
        )

    return _carry(chain, new.name, old.name, new.type, old.type), None


def _variant_carry(
    chain: ItemChain, source: str, target: str, from_type: Optional[str], to_type: Optional[str]
) -> VariantMapExpr:
    if chain.item.nested:
        return VariantMapExpr(
            item=chain.declared_name,
            source=source,
            target=target,
            from_type=from_type,
            to_type=to_type,
            nested=True,
        )
    return VariantMapExpr(item=chain.declared_name, source=source, target=target)


def _variant_upgrade(chain: ItemChain, old: ItemStatus, new: ItemStatus) -> Optional[Expression]:
    if not new.present or isinstance(new, Added):
        return None

    if isinstance(new, Changed):
        return VariantMapExpr(
            item=chain.declared_name,
            source=old.name,
            target=new.to_name,
            function=new.upgrade_with,
            from_type=new.from_type,
            to_type=new.to_type,
            nested=chain.item.nested,
        )
    return _variant_carry(chain, old.name, new.name, old.type, new.type)


def _variant_downgrade(
    container: ValidatedContainer,
    chain: ItemChain,
    old: ItemStatus,
    new: ItemStatus,
    older: RegisteredVersion,
    newer: RegisteredVersion,
    older_definition: Optional[ContainerDefinition],
) -> Optional[Expression]:
    if not new.present:
        return None

    if not old.present:
        fallback = new.downgrade_fallback if isinstance(new, Added) else None
        if not fallback:
            raise IrreversibleConversionError(
                container=container.name,
                item=chain.declared_name,
                source_version=newer.name,
                target_version=older.name,
                reason=f"variant {new.name!r} does not exist in {older.name} and declares no `downgrade_fallback`",
            )
        if older_definition is not None and older_definition.member(fallback) is None:
            raise IrreversibleConversionError(
                container=container.name,
                item=chain.declared_name,
                source_version=newer.name,
                target_version=older.name,
                reason=f"`downgrade_fallback` {fallback!r} is not a variant of {older.name}",
            )
        return VariantFallbackExpr(item=chain.declared_name, source=new.name, target=fallback)

    if isinstance(new, Changed):
        return VariantMapExpr(
            item=chain.declared_name,
            source=new.to_name,
            target=old.name,
            function=new.downgrade_with,
            from_type=new.to_type,
            to_type=new.from_type,
            nested=chain.item.nested,
        )
    return _variant_carry(chain, new.name, old.name, new.type, old.type)


def generate_edge(
    container: ValidatedContainer,
    chains: Sequence[ItemChain],
    older: RegisteredVersion,
    newer: RegisteredVersion,
    direction: Direction,
    *,
    definitions: Optional[Dict[str, ContainerDefinition]] = None,
) -> ConversionEdge:
    """Builds one conversion edge between two adjacent versions.

    `older`/`newer` always name the pair in registry order; `direction`
    selects whether the edge reads from `older` (upgrade) or `newer`
    (downgrade).
    """

    if container.registry.next(older) != newer:
        raise ValueError(f"{older.name} and {newer.name} are not adjacent versions")

    expressions: List[Expression] = []
    dropped: List[DroppedItem] = []
    older_definition = (definitions or {}).get(older.name)

    for chain in chains:
        old = chain.status_at(older)
        new = chain.status_at(newer)

        if container.kind is ContainerKind.STRUCT:
            if direction is Direction.UPGRADE:
                expr = _field_upgrade(chain, old, new)
            else:
                expr, drop = _field_downgrade(chain, old, new)
                if drop is not None:
                    dropped.append(drop)
        else:
            if direction is Direction.UPGRADE:
                expr = _variant_upgrade(chain, old, new)
            else:
                expr = _variant_downgrade(container, chain, old, new, older, newer, older_definition)

        if expr is not None:
            expressions.append(expr)

    source, target = (older, newer) if direction is Direction.UPGRADE else (newer, older)
    return ConversionEdge(
        container=container.name,
        container_kind=container.kind,
        source=source,
        target=target,
        direction=direction,
        expressions=tuple(expressions),
        dropped=tuple(dropped),
    )


def generate_edges(
    container: ValidatedContainer,
    chains: Sequence[ItemChain],
    *,
    definitions: Optional[Dict[str, ContainerDefinition]] = None,
) -> Dict[Tuple[str, str], ConversionEdge]:
    """Upgrade and downgrade edges for every adjacent version pair.

    Pairs whose older version sets `skip_from` (or every pair, when the
    container sets it) get no edges.
    """

    edges: Dict[Tuple[str, str], ConversionEdge] = {}
    for older, newer in container.registry.adjacent_pairs():
        if container.spec.options.skip_from or older.skip_from:
            log.info("skipping conversions between %s and %s for %s", older.name, newer.name, container.name)
            continue
        for direction in (Direction.UPGRADE, Direction.DOWNGRADE):
            edge = generate_edge(container, chains, older, newer, direction, definitions=definitions)
            edges[edge.key] = edge
    return edges
