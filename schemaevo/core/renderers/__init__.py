from .base import Renderer, render_module, snake_case
from .python_gen import PythonRenderer
from .schema_gen import SchemaRenderer, definition_schema, type_schema

RENDER_FORMATS = ("python", "yaml", "json")


def get_renderer(fmt: str) -> Renderer:
    fmt = (fmt or "").lower()
    if fmt in ("python", "py"):
        return PythonRenderer()
    if fmt in ("yaml", "yml", "json"):
        return SchemaRenderer(fmt)
    raise ValueError(f"unsupported render format {fmt!r} (expected one of {', '.join(RENDER_FORMATS)})")


__all__ = [
    "RENDER_FORMATS",
    "PythonRenderer",
    "Renderer",
    "SchemaRenderer",
    "definition_schema",
    "get_renderer",
    "render_module",
    "snake_case",
    "type_schema",
]
