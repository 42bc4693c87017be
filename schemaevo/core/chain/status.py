"""Per-version status of a single item.

Exactly one status exists for every (item, declared version) pair once a chain
has been filled. Present statuses expose the concrete `name` and `type` the
item has in that version.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Added:
    name: str
    type: Optional[str] = None
    default: Optional[str] = None
    default_value: Any = None
    has_default_value: bool = False
    downgrade_fallback: Optional[str] = None

    status = "added"
    present = True

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return None


@dataclass(frozen=True)
class Renamed:
    from_name: str
    to_name: str
    type: Optional[str] = None

    status = "renamed"
    present = True

    @property
    def name(self) -> str:
        return self.to_name

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return (self.from_name, self.type)


@dataclass(frozen=True)
class Changed:
    from_name: str
    from_type: Optional[str]
    to_name: str
    to_type: Optional[str]
    upgrade_with: Optional[str] = None
    downgrade_with: Optional[str] = None

    status = "changed"
    present = True

    @property
    def name(self) -> str:
        return self.to_name

    @property
    def type(self) -> Optional[str]:
        return self.to_type

    @property
    def type_changed(self) -> bool:
        return self.from_type != self.to_type

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return (self.from_name, self.from_type)


@dataclass(frozen=True)
class Deprecated:
    previous_name: str
    name: str
    type: Optional[str] = None
    note: Optional[str] = None

    status = "deprecated"
    present = True

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return (self.previous_name, self.type)


@dataclass(frozen=True)
class NoChange:
    name: str
    type: Optional[str] = None
    previously_deprecated: bool = False
    note: Optional[str] = None

    status = "no_change"
    present = True

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return (self.name, self.type)


@dataclass(frozen=True)
class NotPresent:
    status = "not_present"
    present = False

    def predecessor(self) -> Optional[Tuple[str, Optional[str]]]:
        return None


ItemStatus = Union[Added, Renamed, Changed, Deprecated, NoChange, NotPresent]


def is_deprecated(status: ItemStatus) -> bool:
    if isinstance(status, Deprecated):
        return True
    return isinstance(status, NoChange) and status.previously_deprecated


def status_to_dict(status: ItemStatus) -> Dict[str, Any]:
    out: Dict[str, Any] = {"status": status.status}
    if isinstance(status, Added):
        out.update(name=status.name, type=status.type, default=status.default)
        if status.has_default_value:
            out["default_value"] = status.default_value
        if status.downgrade_fallback:
            out["downgrade_fallback"] = status.downgrade_fallback
    elif isinstance(status, Renamed):
        out.update(from_name=status.from_name, to_name=status.to_name, type=status.type)
    elif isinstance(status, Changed):
        out.update(
            from_name=status.from_name,
            from_type=status.from_type,
            to_name=status.to_name,
            to_type=status.to_type,
        )
    elif isinstance(status, Deprecated):
        out.update(previous_name=status.previous_name, name=status.name, type=status.type, note=status.note)
    elif isinstance(status, NoChange):
        out.update(name=status.name, type=status.type, previously_deprecated=status.previously_deprecated)
    return out
