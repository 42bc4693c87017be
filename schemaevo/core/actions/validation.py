"""Validation of item actions against the declared versions.

Every rule runs independently and contributes to one list of diagnostics, so a
single pass reports everything wrong with a container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from schemaevo.core.errors import ActionValidationError, Diagnostic, ErrorCategory
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import VersionRegistry, check_version_definitions

from .models import ContainerSpec, ItemSpec

log = logging.getLogger("schemaevo.validation")


@dataclass(frozen=True)
class ValidatedContainer:
    spec: ContainerSpec
    registry: VersionRegistry

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> ContainerKind:
        return self.spec.kind


def _diag(category: ErrorCategory, code: str, item: ItemSpec, message: str, **details) -> Diagnostic:
    return Diagnostic(category=category, code=code, message=message, item=item.name, details=details)


def _check_references(item: ItemSpec, declared: Dict[str, int]) -> List[Diagnostic]:
    out: List[Diagnostic] = []

    def check(action: str, since: str) -> None:
        if since not in declared:
            out.append(
                _diag(
                    ErrorCategory.REFERENCE,
                    f"{action}.undeclared_version",
                    item,
                    f"the `{action}` action uses version {since!r} which is not declared",
                    version=since,
                )
            )

    if item.added is not None:
        check("added", item.added.since)
    for change in item.changes:
        check("changed", change.since)
    if item.deprecated is not None:
        check("deprecated", item.deprecated.since)
    return out


def _check_combinations(item: ItemSpec) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    added = item.added.since if item.added else None
    deprecated = item.deprecated.since if item.deprecated else None
    change_versions = [c.since for c in item.changes]

    if added is not None and added == deprecated:
        out.append(
            _diag(
                ErrorCategory.ORDERING,
                "actions.added_deprecated_same_version",
                item,
                "cannot be marked as `added` and `deprecated` in the same version",
                version=added,
            )
        )
    if added is not None and added in change_versions:
        out.append(
            _diag(
                ErrorCategory.ORDERING,
                "actions.added_changed_same_version",
                item,
                "cannot be marked as `added` and `changed` in the same version",
                version=added,
            )
        )
    if deprecated is not None and deprecated in change_versions:
        out.append(
            _diag(
                ErrorCategory.ORDERING,
                "actions.changed_deprecated_same_version",
                item,
                "cannot be marked as `deprecated` and `changed` in the same version",
                version=deprecated,
            )
        )

    seen = set()
    for v in change_versions:
        if v in seen:
            out.append(
                _diag(
                    ErrorCategory.ORDERING,
                    "actions.duplicate_change_version",
                    item,
                    f"more than one `changed` action uses version {v!r}",
                    version=v,
                )
            )
        seen.add(v)
    return out


def _check_order(item: ItemSpec, declared: Dict[str, int]) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    added = declared.get(item.added.since) if item.added else None
    deprecated = declared.get(item.deprecated.since) if item.deprecated else None

    if added is not None and deprecated is not None and added > deprecated:
        out.append(
            _diag(
                ErrorCategory.ORDERING,
                "actions.deprecated_before_added",
                item,
                f"cannot be marked as `added` in version {item.added.since!r} while being marked as "
                f"`deprecated` in an earlier version {item.deprecated.since!r}",
            )
        )

    ranks = [declared[c.since] for c in item.changes if c.since in declared]
    if any((added is not None and r <= added) or (deprecated is not None and r >= deprecated) for r in ranks):
        out.append(
            _diag(
                ErrorCategory.ORDERING,
                "actions.change_out_of_range",
                item,
                "all changes must use versions higher than `added` and lower than `deprecated`",
            )
        )
    return out


def _check_naming(item: ItemSpec, kind: ContainerKind) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    prefix = kind.deprecated_prefix
    prefixed = kind.has_deprecated_prefix(item.name)

    if item.deprecated is not None and not prefixed:
        out.append(
            _diag(
                ErrorCategory.NAMING,
                "naming.missing_deprecated_prefix",
                item,
                f"marked as `deprecated` and thus must include the `{prefix}` prefix",
            )
        )
    if item.deprecated is None and prefixed:
        out.append(
            _diag(
                ErrorCategory.NAMING,
                "naming.unexpected_deprecated_prefix",
                item,
                f"not marked as `deprecated` and thus must not include the `{prefix}` prefix",
            )
        )
    for change in item.changes:
        if change.from_name and kind.has_deprecated_prefix(change.from_name):
            out.append(
                _diag(
                    ErrorCategory.NAMING,
                    "naming.prefixed_previous_name",
                    item,
                    "the previous name must not start with the deprecation prefix",
                    from_name=change.from_name,
                )
            )
    return out


def _check_arguments(item: ItemSpec, kind: ContainerKind) -> List[Diagnostic]:
    out: List[Diagnostic] = []

    if kind is ContainerKind.STRUCT and not item.type:
        out.append(_diag(ErrorCategory.ARGUMENT, "field.missing_type", item, "struct fields must declare a type"))

    for change in item.changes:
        if change.from_type is None:
            if change.upgrade_with:
                out.append(
                    _diag(
                        ErrorCategory.ARGUMENT,
                        "changed.upgrade_with_without_type",
                        item,
                        "the `upgrade_with` argument must be used in combination with `from_type`",
                    )
                )
            if change.downgrade_with:
                out.append(
                    _diag(
                        ErrorCategory.ARGUMENT,
                        "changed.downgrade_with_without_type",
                        item,
                        "the `downgrade_with` argument must be used in combination with `from_type`",
                    )
                )
        if change.from_name is None and change.from_type is None:
            out.append(
                _diag(
                    ErrorCategory.ARGUMENT,
                    "changed.empty",
                    item,
                    "a `changed` action must set `from_name`, `from_type` or both",
                    version=change.since,
                )
            )

    if item.added is not None:
        if item.added.default is not None and not item.added.default.strip():
            out.append(_diag(ErrorCategory.ARGUMENT, "added.empty_default", item, "`default` cannot be empty"))
        if item.added.downgrade_fallback and kind is not ContainerKind.ENUM:
            out.append(
                _diag(
                    ErrorCategory.ARGUMENT,
                    "added.fallback_on_field",
                    item,
                    "`downgrade_fallback` is only supported on enum variants",
                )
            )
    return out


def validate_item(item: ItemSpec, kind: ContainerKind, declared: Dict[str, int]) -> List[Diagnostic]:
    """Returns every diagnostic for one item. `declared` maps version name to rank."""

    out: List[Diagnostic] = []
    out += _check_references(item, declared)
    out += _check_combinations(item)
    out += _check_order(item, declared)
    out += _check_naming(item, kind)
    out += _check_arguments(item, kind)
    return out


def validate_container(spec: ContainerSpec, *, allow_unsorted: Optional[bool] = None) -> ValidatedContainer:
    unsorted_ok = spec.options.allow_unsorted if allow_unsorted is None else allow_unsorted

    diagnostics = check_version_definitions(spec.versions, allow_unsorted=unsorted_ok)

    declared: Dict[str, int] = {}
    for idx, vd in enumerate(spec.versions):
        declared.setdefault(vd.name, idx)

    for item in spec.items:
        diagnostics += validate_item(item, spec.kind, declared)

    if spec.k8s is not None and spec.k8s.storage_version and spec.k8s.storage_version not in declared:
        diagnostics.append(
            Diagnostic(
                category=ErrorCategory.REFERENCE,
                code="k8s.undeclared_storage_version",
                message=f"storage version {spec.k8s.storage_version!r} is not declared",
            )
        )

    if diagnostics:
        log.warning("container %s failed validation (%d diagnostics)", spec.name, len(diagnostics))
        raise ActionValidationError(container=spec.name, diagnostics=diagnostics)

    registry = VersionRegistry.from_definitions(spec.versions, allow_unsorted=unsorted_ok, container=spec.name)
    return ValidatedContainer(spec=spec, registry=registry)
