from __future__ import annotations

import re
from typing import Dict, Protocol

from schemaevo.core.pipeline import GenerationResult, ModuleResult

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


class Renderer(Protocol):
    """Turns one generation result into files ({relative path: text})."""

    def render(self, result: GenerationResult) -> Dict[str, str]:
        ...


def render_module(renderer: Renderer, module: ModuleResult) -> Dict[str, str]:
    """Files for every successfully generated container of a module."""

    files: Dict[str, str] = {}
    for name in sorted(module.results):
        files.update(renderer.render(module.results[name]))
    return files
