from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple


_LEVEL_RE = re.compile(r"^(?P<identifier>[a-z]+)(?P<number>\d+)$")
_VERSION_RE = re.compile(r"^v(?P<major>\d+)(?P<level>[a-z0-9][a-z0-9-]{0,60}[a-z0-9])?$")


class VersionParseError(ValueError):
    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"invalid version {raw!r}: {reason}")


@total_ordering
@dataclass(frozen=True)
class Level:
    """Minor Kubernetes resource version, `alpha<N>` or `beta<N>`."""

    identifier: str
    number: int

    def _key(self) -> Tuple[int, int]:
        return (0 if self.identifier == "alpha" else 1, self.number)

    def __lt__(self, other: "Level") -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        return f"{self.identifier}{self.number}"

    @classmethod
    def parse(cls, raw: str) -> "Level":
        m = _LEVEL_RE.match(raw)
        if not m:
            raise VersionParseError(raw, "expected alpha<VERSION>|beta<VERSION>")
        identifier = m.group("identifier")
        if identifier not in ("alpha", "beta"):
            raise VersionParseError(raw, "unknown level identifier, expected alpha|beta")
        return cls(identifier=identifier, number=int(m.group("number")))


@total_ordering
@dataclass(frozen=True)
class ApiVersion:
    """A Kubernetes-style API version: `v<MAJOR>` optionally followed by a level.

    Ordering: major first, then any level sorts before the bare major version
    (v1alpha1 < v1beta1 < v1 < v2alpha1).
    """

    major: int
    level: Optional[Level] = None

    def _key(self) -> Tuple[int, int, Tuple[int, int]]:
        if self.level is None:
            return (self.major, 1, (0, 0))
        return (self.major, 0, self.level._key())

    def __lt__(self, other: "ApiVersion") -> bool:
        if not isinstance(other, ApiVersion):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        if self.level is None:
            return f"v{self.major}"
        return f"v{self.major}{self.level}"

    @property
    def module_name(self) -> str:
        return str(self)

    @property
    def variant_name(self) -> str:
        # v1alpha1 -> V1Alpha1
        s = str(self)
        out = []
        upper_next = True
        for ch in s:
            if ch.isdigit():
                out.append(ch)
                upper_next = True
                continue
            out.append(ch.upper() if upper_next else ch)
            upper_next = False
        return "".join(out)


def parse_version(raw: str) -> ApiVersion:
    value = (raw or "").strip()
    if not value or not value.isascii() or len(value) > 63:
        raise VersionParseError(raw, "input is empty, non-ASCII or longer than 63 characters")

    m = _VERSION_RE.match(value)
    if not m:
        raise VersionParseError(raw, "expected v<MAJOR>[alpha<N>|beta<N>]")

    level_raw = m.group("level")
    level = Level.parse(level_raw) if level_raw else None
    return ApiVersion(major=int(m.group("major")), level=level)
