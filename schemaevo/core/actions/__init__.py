from .models import (
    AddedAction,
    ChangedAction,
    ContainerOptions,
    ContainerSpec,
    DeprecatedAction,
    ItemSpec,
    KubernetesOptions,
    ModuleSpec,
)
from .validation import ValidatedContainer, validate_container, validate_item

__all__ = [
    "AddedAction",
    "ChangedAction",
    "ContainerOptions",
    "ContainerSpec",
    "DeprecatedAction",
    "ItemSpec",
    "KubernetesOptions",
    "ModuleSpec",
    "ValidatedContainer",
    "validate_container",
    "validate_item",
]
