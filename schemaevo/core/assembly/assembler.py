from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from schemaevo.core.actions.validation import ValidatedContainer
from schemaevo.core.chain.builder import ItemChain
from schemaevo.core.chain.status import Deprecated, NoChange, is_deprecated
from schemaevo.core.errors import NameCollisionError
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import RegisteredVersion


@dataclass(frozen=True)
class MemberDefinition:
    item: str
    name: str
    type: Optional[str]
    status: str
    deprecated: bool = False
    deprecation_note: Optional[str] = None
    doc: Optional[str] = None
    hint: Optional[str] = None
    nested: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "deprecated": self.deprecated,
            "deprecation_note": self.deprecation_note,
            "doc": self.doc,
            "hint": self.hint,
            "nested": self.nested,
        }


@dataclass(frozen=True)
class ContainerDefinition:
    container: str
    kind: ContainerKind
    version: RegisteredVersion
    members: Tuple[MemberDefinition, ...] = field(default_factory=tuple)
    doc: Optional[str] = None

    def names(self) -> List[str]:
        return [m.name for m in self.members]

    def member(self, name: str) -> Optional[MemberDefinition]:
        for m in self.members:
            if m.name == name:
                return m
        return None

    def member_for_item(self, item: str) -> Optional[MemberDefinition]:
        for m in self.members:
            if m.item == item:
                return m
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "container": self.container,
            "kind": self.kind.value,
            "version": self.version.name,
            "deprecated": self.version.deprecated,
            "deprecation_note": self.version.deprecation_note,
            "docs": list(self.version.docs),
            "doc": self.doc,
            "members": [m.to_dict() for m in self.members],
        }


def assemble(
    container: ValidatedContainer,
    chains: Sequence[ItemChain],
    version: RegisteredVersion,
) -> ContainerDefinition:
    """Returns the members present in `version`, in declaration order.

    Raises NameCollisionError when two items resolve to the same identifier.
    """

    members: List[MemberDefinition] = []
    for chain in chains:
        status = chain.status_at(version)
        if not status.present:
            continue

        note = None
        if isinstance(status, (Deprecated, NoChange)):
            note = status.note

        members.append(
            MemberDefinition(
                item=chain.declared_name,
                name=status.name,
                type=status.type,
                status=status.status,
                deprecated=is_deprecated(status),
                deprecation_note=note,
                doc=chain.item.doc,
                hint=chain.item.hint,
                nested=chain.item.nested,
            )
        )

    counts = Counter(m.name for m in members)
    collisions = [name for name, n in counts.items() if n > 1]
    if collisions:
        raise NameCollisionError(container=container.name, version=version.name, names=collisions)

    return ContainerDefinition(
        container=container.name,
        kind=container.kind,
        version=version,
        members=tuple(members),
        doc=container.spec.doc,
    )


def assemble_all(container: ValidatedContainer, chains: Sequence[ItemChain]) -> List[ContainerDefinition]:
    return [assemble(container, chains, v) for v in container.registry]
