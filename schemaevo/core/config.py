"""
Runtime settings and container description loading.

Environment variables:
    SCHEMAEVO_HOST             : bind address of the HTTP service (default 0.0.0.0)
    SCHEMAEVO_PORT             : port of the HTTP service (default 8001)
    SCHEMAEVO_LOG_LEVEL        : root log level (default INFO)
    SCHEMAEVO_RENDER_FORMAT    : default renderer: python, yaml or json (default python)
    SCHEMAEVO_TRACK_CONVERSIONS: record dropped values in status.changedValues (default off)
    SCHEMAEVO_FUNCTION_MODULES : comma-separated modules the HTTP service may import
                                 conversion functions from (default none)

Description files may be JSON or YAML; JSON is tried first.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml
from pydantic import ValidationError

from schemaevo.core.actions.models import ContainerSpec, ModuleSpec
from schemaevo.core.errors import SchemaEvoError

_log = logging.getLogger("schemaevo.config")

_TRUE = ("1", "true", "yes", "on")


class DescriptionFileError(SchemaEvoError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot load {self.path}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "path": self.path, "reason": self.reason}


def _flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name) or default).strip().lower() in _TRUE


def _int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _log.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default


def _csv(name: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in (os.getenv(name) or "").split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"
    render_format: str = "python"
    track_conversions: bool = False
    function_modules: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("SCHEMAEVO_HOST", "0.0.0.0"),
            port=_int("SCHEMAEVO_PORT", 8001),
            log_level=(os.getenv("SCHEMAEVO_LOG_LEVEL") or "INFO").strip().upper(),
            render_format=(os.getenv("SCHEMAEVO_RENDER_FORMAT") or "python").strip().lower(),
            track_conversions=_flag("SCHEMAEVO_TRACK_CONVERSIONS"),
            function_modules=_csv("SCHEMAEVO_FUNCTION_MODULES"),
        )


def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("schemaevo").setLevel(level)


def parse_description(text: str, *, source: str = "<string>") -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DescriptionFileError(source, f"neither JSON nor YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise DescriptionFileError(source, f"expected a mapping at the top level, got {type(data).__name__}")
    return data


def _read(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptionFileError(p, str(exc)) from exc
    return parse_description(text, source=str(p))


def load_container_file(path: Union[str, Path]) -> ContainerSpec:
    data = _read(path)
    try:
        spec = ContainerSpec.model_validate(data)
    except ValidationError as exc:
        raise DescriptionFileError(path, str(exc)) from exc
    _log.info("Loaded container %s from %s", spec.name, path)
    return spec


def load_module_file(path: Union[str, Path]) -> ModuleSpec:
    data = _read(path)
    try:
        module = ModuleSpec.model_validate(data)
    except ValidationError as exc:
        raise DescriptionFileError(path, str(exc)) from exc
    _log.info("Loaded module %s (%d containers) from %s", module.name, len(module.containers), path)
    return module


def is_module_description(data: Dict[str, Any]) -> bool:
    return "containers" in data
