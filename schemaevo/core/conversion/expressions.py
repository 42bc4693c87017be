"""Emission-agnostic descriptions of what a conversion edge does per item.

Renderers turn these into source text; the runtime evaluates them directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import RegisteredVersion


class Direction(str, Enum):
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


@dataclass(frozen=True)
class CopyExpr:
    item: str
    source: str
    target: str

    kind = "copy"


@dataclass(frozen=True)
class DefaultExpr:
    item: str
    target: str
    type: Optional[str] = None
    supplier: Optional[str] = None
    value: Any = None
    has_value: bool = False

    kind = "default"


@dataclass(frozen=True)
class FunctionExpr:
    item: str
    source: str
    target: str
    function: str

    kind = "function"


@dataclass(frozen=True)
class NestedConvertExpr:
    item: str
    source: str
    target: str
    from_type: Optional[str]
    to_type: Optional[str]
    hint: Optional[str] = None

    kind = "nested"


@dataclass(frozen=True)
class VariantMapExpr:
    item: str
    source: str
    target: str
    function: Optional[str] = None
    from_type: Optional[str] = None
    to_type: Optional[str] = None
    # Payload holds another versioned container and follows the same edge.
    nested: bool = False

    kind = "variant"

    @property
    def converts_payload(self) -> bool:
        return self.function is not None or self.nested or self.from_type != self.to_type


@dataclass(frozen=True)
class VariantFallbackExpr:
    item: str
    source: str
    target: str

    kind = "variant_fallback"


Expression = Union[CopyExpr, DefaultExpr, FunctionExpr, NestedConvertExpr, VariantMapExpr, VariantFallbackExpr]


@dataclass(frozen=True)
class DroppedItem:
    """A value present in the source version that the target cannot hold."""

    item: str
    source: str

    @property
    def json_path(self) -> str:
        return f".{self.item}"


def expression_to_dict(expr: Expression) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": expr.kind}
    for key, value in vars(expr).items():
        out[key] = value
    return out


@dataclass(frozen=True)
class ConversionEdge:
    container: str
    container_kind: ContainerKind
    source: RegisteredVersion
    target: RegisteredVersion
    direction: Direction
    expressions: Tuple[Expression, ...] = field(default_factory=tuple)
    dropped: Tuple[DroppedItem, ...] = field(default_factory=tuple)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.source.name, self.target.name)

    @property
    def function_name(self) -> str:
        return f"{self.direction.value}_{self.source.name}_to_{self.target.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "container": self.container,
            "kind": self.container_kind.value,
            "source": self.source.name,
            "target": self.target.name,
            "direction": self.direction.value,
            "expressions": [expression_to_dict(e) for e in self.expressions],
            "dropped": [{"item": d.item, "source": d.source, "json_path": d.json_path} for d in self.dropped],
        }
