"""Error taxonomy for the generation pipeline.

Validation problems are collected as `Diagnostic` records and raised together
in one `ActionValidationError`. Collisions and irreversible downgrades abort
generation of a single container.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorCategory(str, Enum):
    REFERENCE = "reference"
    ORDERING = "ordering"
    NAMING = "naming"
    ARGUMENT = "argument"
    COLLISION = "collision"
    IRREVERSIBLE = "irreversible"


@dataclass(frozen=True)
class Diagnostic:
    category: ErrorCategory
    code: str
    message: str
    item: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["category"] = self.category.value
        return d

    def __str__(self) -> str:
        if self.item:
            return f"[{self.code}] {self.item}: {self.message}"
        return f"[{self.code}] {self.message}"


class SchemaEvoError(Exception):
    category: Optional[ErrorCategory] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class ActionValidationError(SchemaEvoError):
    def __init__(self, *, container: str, diagnostics: Sequence[Diagnostic]):
        self.container = container
        self.diagnostics: List[Diagnostic] = list(diagnostics)
        lines = "\n".join(f"  - {d}" for d in self.diagnostics)
        super().__init__(
            f"container {container!r} failed validation with {len(self.diagnostics)} error(s):\n{lines}"
        )

    @property
    def categories(self) -> List[ErrorCategory]:
        return sorted({d.category for d in self.diagnostics}, key=lambda c: c.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "container": self.container,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class NameCollisionError(SchemaEvoError):
    category = ErrorCategory.COLLISION

    def __init__(self, *, container: str, version: str, names: Sequence[str]):
        self.container = container
        self.version = version
        self.names = sorted(set(names))
        joined = ", ".join(repr(n) for n in self.names)
        super().__init__(
            f"container {container!r} has colliding member identifier(s) {joined} in version {version}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "container": self.container,
            "version": self.version,
            "names": list(self.names),
        }


class IrreversibleConversionError(SchemaEvoError):
    category = ErrorCategory.IRREVERSIBLE

    def __init__(self, *, container: str, item: str, source_version: str, target_version: str, reason: str):
        self.container = container
        self.item = item
        self.source_version = source_version
        self.target_version = target_version
        self.reason = reason
        super().__init__(
            f"cannot downgrade {container}.{item} from {source_version} to {target_version}: {reason}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "container": self.container,
            "item": self.item,
            "source_version": self.source_version,
            "target_version": self.target_version,
            "reason": self.reason,
        }


class UnknownVersionError(SchemaEvoError):
    category = ErrorCategory.REFERENCE

    def __init__(self, version: str, known: Sequence[str] = ()):
        self.version = version
        self.known = list(known)
        super().__init__(f"the version {version!r} is not declared (known: {', '.join(self.known) or '-'})")


class ConversionError(SchemaEvoError):
    """Raised by the runtime and the conversion dispatcher."""

    def __init__(self, message: str, *, http_status_code: int = 400):
        self.http_status_code = int(http_status_code)
        super().__init__(message)
