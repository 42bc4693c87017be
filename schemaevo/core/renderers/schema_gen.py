from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

import yaml

from schemaevo.core.assembly.assembler import ContainerDefinition, MemberDefinition
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.pipeline import GenerationResult

from .base import snake_case

FORMATS = ("yaml", "json")

_SCALARS = {
    "str": {"type": "string"},
    "int": {"type": "integer"},
    "float": {"type": "number"},
    "bool": {"type": "boolean"},
    "bytes": {"type": "string", "format": "byte"},
    "datetime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
}

_GENERIC_RE = re.compile(r"^(?:typing\.)?(?P<head>\w+)\[(?P<args>.+)\]$")


def _split_args(args: str) -> list:
    out, depth, buf = [], 0, ""
    for ch in args:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == "," and depth == 0:
            out.append(buf.strip())
            buf = ""
            continue
        buf += ch
    if buf.strip():
        out.append(buf.strip())
    return out


def type_schema(type_str: Optional[str]) -> Dict[str, Any]:
    """OpenAPI v3 schema for a Python type annotation string."""

    if not type_str or type_str.strip() in ("Any", "object"):
        return {"x-kubernetes-preserve-unknown-fields": True}

    t = type_str.strip()
    if t.endswith("| None"):
        inner = type_schema(t[: -len("| None")])
        inner["nullable"] = True
        return inner

    if t in _SCALARS:
        return dict(_SCALARS[t])
    if t in ("list", "List"):
        return {"type": "array", "items": {"x-kubernetes-preserve-unknown-fields": True}}
    if t in ("dict", "Dict"):
        return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}

    m = _GENERIC_RE.match(t)
    if m:
        head = m.group("head")
        args = _split_args(m.group("args"))
        if head == "Optional":
            inner = type_schema(args[0])
            inner["nullable"] = True
            return inner
        if head in ("List", "list", "Sequence", "Set", "set", "Tuple", "tuple"):
            return {"type": "array", "items": type_schema(args[0])}
        if head in ("Dict", "dict", "Mapping") and len(args) == 2:
            return {"type": "object", "additionalProperties": type_schema(args[1])}

    # Another container or an application type.
    return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}


def member_schema(member: MemberDefinition) -> Dict[str, Any]:
    schema = type_schema(member.type)
    if member.hint == "list":
        schema = {"type": "array", "items": schema}
    elif member.hint == "option":
        schema = dict(schema, nullable=True)
    if member.doc:
        schema["description"] = member.doc
    if member.deprecated:
        schema["deprecated"] = True
    return schema


def definition_schema(definition: ContainerDefinition) -> Dict[str, Any]:
    if definition.kind is ContainerKind.ENUM:
        units = [m.name for m in definition.members if m.type is None]
        payloads = [m for m in definition.members if m.type is not None]
        if not payloads:
            return {"type": "string", "enum": units}
        alternatives = []
        if units:
            alternatives.append({"type": "string", "enum": units})
        for m in payloads:
            alternatives.append(
                {
                    "type": "object",
                    "properties": {m.name: type_schema(m.type)},
                    "required": [m.name],
                    "additionalProperties": False,
                }
            )
        return {"oneOf": alternatives}

    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {m.name: member_schema(m) for m in definition.members},
    }
    required = [m.name for m in definition.members if m.hint != "option"]
    if required:
        schema["required"] = required
    if definition.doc:
        schema["description"] = definition.doc
    return schema


def version_document(definition: ContainerDefinition) -> Dict[str, Any]:
    version = definition.version
    doc: Dict[str, Any] = {
        "container": definition.container,
        "kind": definition.kind.value,
        "version": version.name,
        "deprecated": version.deprecated,
    }
    if version.deprecated:
        doc["deprecationNote"] = version.deprecation_note
    if version.docs:
        doc["docs"] = list(version.docs)
    doc["schema"] = definition_schema(definition)
    return doc


class SchemaRenderer:
    """One schema document per version, as YAML or JSON."""

    def __init__(self, fmt: str = "yaml"):
        fmt = (fmt or "yaml").lower()
        if fmt == "yml":
            fmt = "yaml"
        if fmt not in FORMATS:
            raise ValueError(f"unsupported schema format {fmt!r} (expected one of {', '.join(FORMATS)})")
        self.fmt = fmt

    def dump(self, payload: Dict[str, Any]) -> str:
        if self.fmt == "json":
            return json.dumps(payload, indent=2, sort_keys=False) + "\n"
        return yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)

    def render(self, result: GenerationResult) -> Dict[str, str]:
        base = snake_case(result.name)
        files: Dict[str, str] = {}
        for version in result.registry:
            definition = result.definition(version)
            files[f"{base}/{version.name}.{self.fmt}"] = self.dump(version_document(definition))
        return files
