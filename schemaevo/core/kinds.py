from __future__ import annotations

from enum import Enum


class ContainerKind(str, Enum):
    """What kind of record is being versioned.

    Struct containers hold named fields, enum containers hold variants. The
    chain algorithm is shared; only the deprecation prefix and the shape of
    conversion expressions differ.
    """

    STRUCT = "struct"
    ENUM = "enum"

    @property
    def item_label(self) -> str:
        return "field" if self is ContainerKind.STRUCT else "variant"

    @property
    def deprecated_prefix(self) -> str:
        return "deprecated_" if self is ContainerKind.STRUCT else "Deprecated"

    def has_deprecated_prefix(self, name: str) -> bool:
        return name.startswith(self.deprecated_prefix)

    def strip_deprecated_prefix(self, name: str) -> str:
        prefix = self.deprecated_prefix
        return name[len(prefix):] if name.startswith(prefix) else name
