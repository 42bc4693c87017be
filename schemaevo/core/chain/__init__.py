from .status import (
    Added,
    Changed,
    Deprecated,
    ItemStatus,
    NoChange,
    NotPresent,
    Renamed,
    is_deprecated,
    status_to_dict,
)
from .neighbors import OrderedMap
from .builder import ItemChain, build_chain, build_item_chains

__all__ = [
    "Added",
    "Changed",
    "Deprecated",
    "ItemStatus",
    "NoChange",
    "NotPresent",
    "Renamed",
    "is_deprecated",
    "status_to_dict",
    "OrderedMap",
    "ItemChain",
    "build_chain",
    "build_item_chains",
]
