from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schemaevo.core.kinds import ContainerKind
from schemaevo.core.versions.registry import VersionDefinition


ItemHint = Literal["option", "list"]


class AddedAction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    since: str
    # Dotted name of a zero-argument supplier resolved by the runtime/renderer.
    default: Optional[str] = None
    default_value: Any = None
    # Enum variants only: variant of the older version a value of this
    # variant downgrades to.
    downgrade_fallback: Optional[str] = None

    @property
    def has_default_value(self) -> bool:
        return "default_value" in self.model_fields_set


class ChangedAction(BaseModel):
    """A rename and/or retype of an item, effective in `since`.

    A change with only `from_name` is a plain rename.
    """

    model_config = ConfigDict(extra="forbid")

    since: str
    from_name: Optional[str] = None
    from_type: Optional[str] = None
    upgrade_with: Optional[str] = None
    downgrade_with: Optional[str] = None


class DeprecatedAction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    since: str
    note: Optional[str] = None


class ItemSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: Optional[str] = None
    doc: Optional[str] = None
    hint: Optional[ItemHint] = None
    nested: bool = False

    added: Optional[AddedAction] = None
    changes: List[ChangedAction] = Field(
        default_factory=list,
        validation_alias=AliasChoices("changes", "changed", "renamed"),
    )
    deprecated: Optional[DeprecatedAction] = None

    @property
    def has_actions(self) -> bool:
        return self.added is not None or bool(self.changes) or self.deprecated is not None


class ContainerOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allow_unsorted: bool = False
    # Skip generating every conversion edge for this container.
    skip_from: bool = False


class KubernetesOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    group: str
    kind: Optional[str] = None
    plural: Optional[str] = None
    singular: Optional[str] = None
    namespaced: bool = False
    storage_version: Optional[str] = None
    shortnames: List[str] = Field(default_factory=list)


class ContainerSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    kind: ContainerKind = ContainerKind.STRUCT
    doc: Optional[str] = None
    versions: List[VersionDefinition] = Field(default_factory=list)
    items: List[ItemSpec] = Field(default_factory=list)
    options: ContainerOptions = Field(default_factory=ContainerOptions)
    k8s: Optional[KubernetesOptions] = None

    def with_versions(self, versions: List[VersionDefinition]) -> "ContainerSpec":
        return self.model_copy(update={"versions": list(versions)})


class ModuleSpec(BaseModel):
    """Several containers sharing one version declaration."""

    model_config = ConfigDict(extra="forbid")

    name: str = "module"
    versions: List[VersionDefinition]
    containers: List[ContainerSpec] = Field(default_factory=list)
    options: ContainerOptions = Field(default_factory=ContainerOptions)
