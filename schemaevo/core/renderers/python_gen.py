from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from schemaevo.core.assembly.assembler import ContainerDefinition, MemberDefinition
from schemaevo.core.conversion.expressions import (
    ConversionEdge,
    CopyExpr,
    DefaultExpr,
    FunctionExpr,
    NestedConvertExpr,
    VariantFallbackExpr,
    VariantMapExpr,
)
from schemaevo.core.conversion.runtime import base_type, type_default
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.pipeline import GenerationResult

from .base import snake_case

PACKAGE_ROOT = Path(__file__).resolve().parents[2]
TEMPLATES_DIR = PACKAGE_ROOT / "templates"

_PRIMITIVES = ("str", "int", "float", "bool")


def _env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def class_name(definition: ContainerDefinition) -> str:
    return f"{definition.container}{definition.version.api_version.variant_name}"


def _annotation(member: MemberDefinition) -> str:
    t = member.type or "Any"
    if member.hint == "list":
        return f"List[{t}]"
    if member.hint == "option":
        return f"Optional[{t}]"
    return t


class _Imports:
    """Aliases for user functions referenced by dotted name."""

    def __init__(self) -> None:
        self.functions: Dict[str, str] = {}
        self.lines: List[str] = []
        self.nested: Dict[str, str] = {}
        self.uses_convert = False

    def function(self, dotted: str) -> str:
        alias = self.functions.get(dotted)
        if alias is not None:
            return alias

        module, sep, attr = dotted.partition(":")
        if not sep:
            module, _, attr = dotted.rpartition(".")
        if not module:
            # Bare names must be provided by whoever imports the generated module.
            self.functions[dotted] = attr
            return attr
        alias = f"_{attr}"
        if alias in self.functions.values():
            alias = f"_{attr}_{len(self.functions)}"
        self.functions[dotted] = alias
        self.lines.append(f"from {module} import {attr} as {alias}")
        return alias

    def nested_module(self, type_name: str) -> str:
        module = snake_case(type_name)
        alias = self.nested.get(module)
        if alias is None:
            alias = f"_nested_{module}"
            self.nested[module] = alias
            self.lines.append(f"from . import {module} as {alias}")
        return alias


def _nested_call(
    src: str,
    from_type: Optional[str],
    to_type: Optional[str],
    edge: ConversionEdge,
    imports: _Imports,
) -> str:
    src_base = base_type(from_type)
    dst_base = base_type(to_type)

    if src_base == dst_base:
        if dst_base in _PRIMITIVES:
            return src
        alias = imports.nested_module(dst_base)
        return f"{alias}.{edge.function_name}({src})"
    if dst_base in _PRIMITIVES:
        return f"{dst_base}({src})"
    imports.uses_convert = True
    return f"_convert({src}, {src_base!r}, {dst_base!r})"


def _field_value(expr: Any, edge: ConversionEdge, imports: _Imports) -> str:
    if isinstance(expr, DefaultExpr):
        if expr.supplier:
            return f"{imports.function(expr.supplier)}()"
        if expr.has_value:
            return repr(expr.value)
        return repr(type_default(expr.type))

    src = f"value.{expr.source}"
    if isinstance(expr, CopyExpr):
        return src
    if isinstance(expr, FunctionExpr):
        return f"{imports.function(expr.function)}({src})"
    if isinstance(expr, NestedConvertExpr):
        if expr.hint == "list":
            inner = _nested_call("v", expr.from_type, expr.to_type, edge, imports)
            return f"[{inner} for v in {src}]"
        inner = _nested_call(src, expr.from_type, expr.to_type, edge, imports)
        if expr.hint == "option" and inner != src:
            return f"None if {src} is None else {inner}"
        return inner
    raise TypeError(f"unsupported struct expression {expr!r}")


def _variant_branch(
    expr: Any,
    edge: ConversionEdge,
    source: ContainerDefinition,
    target: ContainerDefinition,
    imports: _Imports,
) -> Dict[str, str]:
    src_cls = class_name(source)
    dst_cls = class_name(target)
    test = f"variant is {src_cls}.{expr.source}"

    if isinstance(expr, VariantFallbackExpr):
        return {"test": test, "result": f"{dst_cls}.{expr.target}", "comment": f"{expr.source} has no {target.version.name} counterpart"}

    member = source.member(expr.source)
    if member is None or member.type is None:
        return {"test": test, "result": f"{dst_cls}.{expr.target}", "comment": ""}

    if expr.function:
        payload = f"{imports.function(expr.function)}(payload)"
    elif expr.nested or expr.from_type != expr.to_type:
        payload = _nested_call("payload", expr.from_type, expr.to_type, edge, imports)
    else:
        payload = "payload"
    return {"test": test, "result": f"({dst_cls}.{expr.target}, {payload})", "comment": ""}


def _function_context(result: GenerationResult, edge: ConversionEdge, imports: _Imports) -> Dict[str, Any]:
    source = result.definition(edge.source.name)
    target = result.definition(edge.target.name)
    ctx: Dict[str, Any] = {
        "name": edge.function_name,
        "source_class": class_name(source),
        "target_class": class_name(target),
        "direction": edge.direction.value,
        "source_version": edge.source.name,
        "target_version": edge.target.name,
        "dropped": [d.source for d in edge.dropped],
    }

    if edge.container_kind is ContainerKind.ENUM:
        ctx["branches"] = [
            _variant_branch(e, edge, source, target, imports)
            for e in edge.expressions
            if isinstance(e, (VariantMapExpr, VariantFallbackExpr))
        ]
    else:
        ctx["assignments"] = [{"name": e.target, "value": _field_value(e, edge, imports)} for e in edge.expressions]
    return ctx


def _class_context(definition: ContainerDefinition) -> Dict[str, Any]:
    members = []
    for m in definition.members:
        comment = ""
        if m.deprecated:
            comment = f"deprecated: {m.deprecation_note}" if m.deprecation_note else "deprecated"
        members.append(
            {
                "name": m.name,
                "annotation": _annotation(m),
                "payload": m.type,
                "comment": comment,
                "doc": m.doc,
            }
        )

    version = definition.version
    return {
        "name": class_name(definition),
        "version": version.name,
        "deprecated": version.deprecation_note if version.deprecated else None,
        "docs": list(version.docs),
        "members": members,
    }


class PythonRenderer:
    """Renders a container as one Python module: a class per version plus
    `upgrade_*` / `downgrade_*` functions for every generated edge.

    Struct versions become dataclasses. Enum versions become `Enum` classes;
    payload-carrying variants travel as `(member, payload)` tuples.
    """

    template_name = "python/module.py.j2"

    def __init__(self, env: Optional[Environment] = None):
        self.env = env or _env()

    def filename(self, result: GenerationResult) -> str:
        return f"{snake_case(result.name)}.py"

    def render(self, result: GenerationResult) -> Dict[str, str]:
        imports = _Imports()
        definitions = [result.definition(v) for v in result.registry]
        classes = [_class_context(d) for d in definitions]

        functions = []
        for older, newer in result.registry.adjacent_pairs():
            for key in ((older.name, newer.name), (newer.name, older.name)):
                edge = result.edges.get(key)
                if edge is not None:
                    functions.append(_function_context(result, edge, imports))

        template = self.env.get_template(self.template_name)
        code = template.render(
            container=result.name,
            doc=result.spec.doc,
            is_enum=result.container.kind is ContainerKind.ENUM,
            versions=result.registry.names(),
            classes=classes,
            functions=functions,
            imports=imports.lines,
            uses_convert=imports.uses_convert,
        )
        return {self.filename(result): code}
