from .crd import CRD_API_VERSION, merged_crd, resource_names
from .dispatcher import REVIEW_API_VERSION, ConversionDispatcher

__all__ = [
    "CRD_API_VERSION",
    "REVIEW_API_VERSION",
    "ConversionDispatcher",
    "merged_crd",
    "resource_names",
]
