from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, model_validator

from schemaevo.core.errors import (
    ActionValidationError,
    Diagnostic,
    ErrorCategory,
    UnknownVersionError,
)

from .version import ApiVersion, VersionParseError, parse_version


class VersionDefinition(BaseModel):
    name: str
    # True uses the default note, a string is used verbatim.
    deprecated: Optional[Union[bool, str]] = None
    skip_from: bool = False
    doc: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        # `versions: [v1alpha1, v1]` is shorthand for name-only definitions.
        if isinstance(data, str):
            return {"name": data}
        return data


@dataclass(frozen=True)
class RegisteredVersion:
    name: str
    api_version: ApiVersion
    rank: int
    deprecation_note: Optional[str] = None
    skip_from: bool = False
    docs: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def deprecated(self) -> bool:
        return self.deprecation_note is not None

    def __str__(self) -> str:
        return self.name


def _deprecation_note(vd: VersionDefinition) -> Optional[str]:
    if vd.deprecated is None or vd.deprecated is False:
        return None
    if vd.deprecated is True:
        return f"Version {vd.name} is deprecated"
    return str(vd.deprecated)


def _doc_lines(doc: Optional[str]) -> Tuple[str, ...]:
    if not doc:
        return ()
    return tuple(line.rstrip() for line in doc.strip().splitlines())


def check_version_definitions(
    definitions: Sequence[VersionDefinition],
    *,
    allow_unsorted: bool = False,
) -> List[Diagnostic]:
    """Returns every problem with a version declaration list (empty when valid)."""

    out: List[Diagnostic] = []
    if not definitions:
        out.append(
            Diagnostic(
                category=ErrorCategory.REFERENCE,
                code="versions.empty",
                message="at least one version must be declared",
            )
        )
        return out

    parsed: List[Tuple[str, ApiVersion]] = []
    for vd in definitions:
        try:
            parsed.append((vd.name, parse_version(vd.name)))
        except VersionParseError as exc:
            out.append(
                Diagnostic(
                    category=ErrorCategory.REFERENCE,
                    code="versions.invalid",
                    message=str(exc),
                    details={"version": vd.name},
                )
            )

    dupes = sorted(name for name, n in Counter(vd.name for vd in definitions).items() if n > 1)
    if dupes:
        out.append(
            Diagnostic(
                category=ErrorCategory.REFERENCE,
                code="versions.duplicate",
                message=f"duplicate versions declared: {', '.join(dupes)}",
                details={"versions": dupes},
            )
        )

    if not allow_unsorted and len(parsed) == len(definitions):
        ordered = sorted(parsed, key=lambda p: p[1])
        for (name, _), (expected, _) in zip(parsed, ordered):
            if name != expected:
                out.append(
                    Diagnostic(
                        category=ErrorCategory.ORDERING,
                        code="versions.unsorted",
                        message=f"versions must be declared in ascending order (version {name!r} is misplaced)",
                        details={"version": name},
                    )
                )
                break

    return out


class VersionRegistry:
    """Ordered, immutable set of declared versions.

    The rank of a version is its position in the declaration list; every
    order-aware operation in the pipeline goes through the rank.
    """

    def __init__(self, versions: Sequence[RegisteredVersion]):
        self._versions: Tuple[RegisteredVersion, ...] = tuple(versions)
        self._by_name: Dict[str, RegisteredVersion] = {v.name: v for v in self._versions}

    @classmethod
    def from_definitions(
        cls,
        definitions: Sequence[VersionDefinition],
        *,
        allow_unsorted: bool = False,
        container: str = "<versions>",
    ) -> "VersionRegistry":
        problems = check_version_definitions(definitions, allow_unsorted=allow_unsorted)
        if problems:
            raise ActionValidationError(container=container, diagnostics=problems)

        return cls(
            [
                RegisteredVersion(
                    name=vd.name,
                    api_version=parse_version(vd.name),
                    rank=idx,
                    deprecation_note=_deprecation_note(vd),
                    skip_from=bool(vd.skip_from),
                    docs=_doc_lines(vd.doc),
                )
                for idx, vd in enumerate(definitions)
            ]
        )

    @classmethod
    def of(cls, *names: str) -> "VersionRegistry":
        return cls.from_definitions([VersionDefinition(name=n) for n in names])

    def __iter__(self) -> Iterator[RegisteredVersion]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, RegisteredVersion):
            name = name.name
        return name in self._by_name

    def names(self) -> List[str]:
        return [v.name for v in self._versions]

    def get(self, name: Union[str, RegisteredVersion]) -> RegisteredVersion:
        key = name.name if isinstance(name, RegisteredVersion) else name
        v = self._by_name.get(key)
        if v is None:
            raise UnknownVersionError(key, self.names())
        return v

    def rank(self, name: Union[str, RegisteredVersion]) -> int:
        return self.get(name).rank

    @property
    def earliest(self) -> RegisteredVersion:
        return self._versions[0]

    @property
    def latest(self) -> RegisteredVersion:
        return self._versions[-1]

    def next(self, name: Union[str, RegisteredVersion]) -> Optional[RegisteredVersion]:
        r = self.rank(name)
        return self._versions[r + 1] if r + 1 < len(self._versions) else None

    def previous(self, name: Union[str, RegisteredVersion]) -> Optional[RegisteredVersion]:
        r = self.rank(name)
        return self._versions[r - 1] if r > 0 else None

    def adjacent_pairs(self) -> List[Tuple[RegisteredVersion, RegisteredVersion]]:
        return list(zip(self._versions, self._versions[1:]))

    def slice(self, start: int, stop: int) -> List[RegisteredVersion]:
        return list(self._versions[start:stop])
