from .expressions import (
    ConversionEdge,
    CopyExpr,
    DefaultExpr,
    Direction,
    DroppedItem,
    Expression,
    FunctionExpr,
    NestedConvertExpr,
    VariantFallbackExpr,
    VariantMapExpr,
    expression_to_dict,
)
from .generator import generate_edge, generate_edges
from .resolver import compose_edges, conversion_path, conversion_paths, path_names, paths_table
from .runtime import ConversionRuntime, ConversionTracker, FunctionRegistry, base_type, edge_functions, type_default

__all__ = [
    "ConversionEdge",
    "CopyExpr",
    "DefaultExpr",
    "Direction",
    "DroppedItem",
    "Expression",
    "FunctionExpr",
    "NestedConvertExpr",
    "VariantFallbackExpr",
    "VariantMapExpr",
    "expression_to_dict",
    "generate_edge",
    "generate_edges",
    "compose_edges",
    "conversion_path",
    "conversion_paths",
    "path_names",
    "paths_table",
    "ConversionRuntime",
    "ConversionTracker",
    "FunctionRegistry",
    "edge_functions",
    "base_type",
    "type_default",
]
