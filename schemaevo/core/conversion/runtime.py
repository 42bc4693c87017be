"""Executes generated conversion edges over plain `dict` instances.

Struct instances are mappings of member name to value. Enum instances are
either a variant name (unit variant) or a single-key mapping
`{variant: payload}`.
"""

from __future__ import annotations

import copy
import importlib
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from schemaevo.core.errors import ConversionError
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.observability.metrics import record_conversion

from .expressions import (
    ConversionEdge,
    CopyExpr,
    DefaultExpr,
    FunctionExpr,
    NestedConvertExpr,
    VariantFallbackExpr,
    VariantMapExpr,
)

log = logging.getLogger("schemaevo.conversion")

_MISSING = object()
_WRAPPER_RE = re.compile(r"^(?:typing\.)?(?:Optional|List|list|Sequence|Set|set|Tuple|tuple)\[(?P<inner>.+)\]$")

_PRIMITIVE_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "list": list,
    "dict": dict,
    "set": set,
    "tuple": tuple,
}

_COERCIBLE = {"str": str, "int": int, "float": float, "bool": bool}


def base_type(type_str: Optional[str]) -> Optional[str]:
    """Innermost type name: `Optional[List[Foo]]` -> `Foo`."""

    if type_str is None:
        return None
    t = type_str.strip()
    if t.endswith("| None"):
        t = t[: -len("| None")].strip()
    while True:
        m = _WRAPPER_RE.match(t)
        if not m:
            return t
        t = m.group("inner").strip()


def type_default(type_str: Optional[str]) -> Any:
    """Value an added member gets when it declares neither supplier nor value."""

    if type_str is None:
        return None
    t = type_str.strip()
    if t.startswith(("Optional[", "typing.Optional[")) or t.endswith("| None") or t in ("Any", "None"):
        return None

    head = t.split("[", 1)[0].lower().replace("typing.", "")
    if head in ("list", "sequence"):
        return []
    if head in ("dict", "mapping"):
        return {}
    factory = _PRIMITIVE_DEFAULTS.get(head)
    return factory() if factory is not None else None


class FunctionRegistry:
    """Resolves dotted function names used by `default`, `upgrade_with` and
    `downgrade_with`.

    Explicitly registered callables win; otherwise the name is imported
    (`package.module.function` or `package.module:function`). With
    `allowed_modules` set, only names under one of those modules are
    imported; an empty allowlist disables importing altogether.
    """

    def __init__(
        self,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
        *,
        allowed_modules: Optional[Sequence[str]] = None,
    ):
        self._functions: Dict[str, Callable[..., Any]] = dict(functions or {})
        self._type_converters: Dict[Tuple[str, str], Callable[[Any], Any]] = {}
        self.allowed_modules: Optional[Tuple[str, ...]] = (
            None if allowed_modules is None else tuple(m.strip() for m in allowed_modules if m.strip())
        )

    def register(self, name: str, fn: Optional[Callable[..., Any]] = None):
        if fn is not None:
            self._functions[name] = fn
            return fn

        def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
            self._functions[name] = f
            return f

        return decorator

    def register_type_converter(self, from_type: str, to_type: str, fn: Callable[[Any], Any]) -> None:
        self._type_converters[(from_type, to_type)] = fn

    def type_converter(self, from_type: Optional[str], to_type: Optional[str]) -> Optional[Callable[[Any], Any]]:
        if from_type is None or to_type is None:
            return None
        return self._type_converters.get((from_type, to_type))

    def is_importable(self, module_name: str) -> bool:
        if self.allowed_modules is None:
            return True
        return any(module_name == m or module_name.startswith(f"{m}.") for m in self.allowed_modules)

    def resolve(self, name: str) -> Callable[..., Any]:
        fn = self._functions.get(name)
        if fn is not None:
            return fn

        module_name, sep, attr = name.partition(":")
        if not sep:
            module_name, _, attr = name.rpartition(".")
        if not module_name or not attr:
            raise ConversionError(f"function {name!r} is not registered", http_status_code=500)
        if not self.is_importable(module_name):
            raise ConversionError(f"function {name!r} is not registered and its module is not allowed")

        try:
            module = importlib.import_module(module_name)
            fn = getattr(module, attr)
        except (ImportError, AttributeError) as exc:
            raise ConversionError(f"cannot resolve function {name!r}: {exc}", http_status_code=500) from exc
        if not callable(fn):
            raise ConversionError(f"{name!r} is not callable", http_status_code=500)

        self._functions[name] = fn
        return fn

    def call(self, name: str, *args: Any) -> Any:
        fn = self.resolve(name)
        try:
            return fn(*args)
        except ConversionError:
            raise
        except Exception as exc:
            raise ConversionError(f"function {name!r} failed: {exc}", http_status_code=500) from exc


def edge_functions(edges: Iterable[ConversionEdge]) -> List[str]:
    """Every function name the given edges call, in first-use order."""

    names: List[str] = []
    for edge in edges:
        for expr in edge.expressions:
            if isinstance(expr, DefaultExpr):
                name = expr.supplier
            elif isinstance(expr, (FunctionExpr, VariantMapExpr)):
                name = expr.function
            else:
                name = None
            if name and name not in names:
                names.append(name)
    return names


class ConversionTracker:
    """Values dropped by downgrades, keyed by JSON path, restored by upgrades."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, path: object) -> bool:
        return path in self._values

    def record(self, path: str, value: Any) -> None:
        self._values[path] = copy.deepcopy(value)

    def take(self, path: str, default: Any = _MISSING) -> Any:
        return self._values.pop(path, default)

    def to_list(self) -> list:
        return [{"jsonPath": k, "value": v} for k, v in sorted(self._values.items())]

    @classmethod
    def from_list(cls, entries) -> "ConversionTracker":
        return cls({e["jsonPath"]: e.get("value") for e in (entries or []) if "jsonPath" in e})


class ConversionRuntime:
    def __init__(self, result, functions: Optional[FunctionRegistry] = None):
        self.result = result
        self.functions = functions or FunctionRegistry()
        self._nested: Dict[str, "ConversionRuntime"] = {}

    @property
    def name(self) -> str:
        return self.result.name

    def register_nested(self, runtime: "ConversionRuntime") -> None:
        self._nested[runtime.name] = runtime

    def check_functions(self) -> None:
        """Resolves every function this runtime (and its nested runtimes) may
        call, so unusable names are reported before any value is converted."""

        problems: List[str] = []
        runtimes = [self] + list(self._nested.values())
        for runtime in runtimes:
            for name in edge_functions(runtime.result.edges.values()):
                try:
                    runtime.functions.resolve(name)
                except ConversionError as exc:
                    problems.append(str(exc))
        if problems:
            raise ConversionError("; ".join(problems))

    def convert(
        self,
        instance: Any,
        current: str,
        desired: str,
        *,
        tracker: Optional[ConversionTracker] = None,
        path: str = "",
    ) -> Any:
        value = instance
        for edge in self.result.edges_between(current, desired):
            value = self.apply_edge(edge, value, tracker=tracker, path=path)
        return value

    def apply_edge(
        self,
        edge: ConversionEdge,
        instance: Any,
        *,
        tracker: Optional[ConversionTracker] = None,
        path: str = "",
    ) -> Any:
        record_conversion(edge.direction.value)
        if edge.container_kind is ContainerKind.ENUM:
            return self._apply_enum_edge(edge, instance, tracker, path)
        return self._apply_struct_edge(edge, instance, tracker, path)

    def _apply_struct_edge(
        self,
        edge: ConversionEdge,
        instance: Any,
        tracker: Optional[ConversionTracker],
        path: str,
    ) -> Dict[str, Any]:
        if not isinstance(instance, Mapping):
            raise ConversionError(
                f"{edge.container} {edge.source.name} instance must be a mapping, got {type(instance).__name__}"
            )

        out: Dict[str, Any] = {}
        for expr in edge.expressions:
            if isinstance(expr, DefaultExpr):
                out[expr.target] = self._default(expr, tracker, path)
                continue

            value = instance.get(expr.source, _MISSING)
            if value is _MISSING:
                # Absent members stay absent.
                continue

            if isinstance(expr, CopyExpr):
                out[expr.target] = value
            elif isinstance(expr, FunctionExpr):
                out[expr.target] = self.functions.call(expr.function, value)
            elif isinstance(expr, NestedConvertExpr):
                out[expr.target] = self._nested_convert(
                    value, expr.from_type, expr.to_type, expr.hint, edge, tracker, f"{path}.{expr.item}"
                )
            else:
                raise ConversionError(f"unsupported expression {expr.kind!r} on a struct edge", http_status_code=500)

        if tracker is not None:
            for drop in edge.dropped:
                if drop.source in instance:
                    tracker.record(f"{path}{drop.json_path}", instance[drop.source])

        return out

    def _default(self, expr: DefaultExpr, tracker: Optional[ConversionTracker], path: str) -> Any:
        if tracker is not None:
            tracked = tracker.take(f"{path}.{expr.item}")
            if tracked is not _MISSING:
                return tracked
        if expr.supplier:
            return self.functions.call(expr.supplier)
        if expr.has_value:
            return copy.deepcopy(expr.value)
        return type_default(expr.type)

    def _apply_enum_edge(
        self,
        edge: ConversionEdge,
        instance: Any,
        tracker: Optional[ConversionTracker],
        path: str,
    ) -> Any:
        if isinstance(instance, str):
            variant, payload, unit = instance, None, True
        elif isinstance(instance, Mapping) and len(instance) == 1:
            variant, payload = next(iter(instance.items()))
            unit = False
        else:
            raise ConversionError(
                f"{edge.container} {edge.source.name} instance must be a variant name or a single-key mapping"
            )

        for expr in edge.expressions:
            if expr.source != variant:
                continue
            if isinstance(expr, VariantFallbackExpr):
                log.debug("variant %s of %s downgraded to fallback %s", variant, edge.container, expr.target)
                return expr.target
            if isinstance(expr, VariantMapExpr):
                if unit:
                    return expr.target
                if expr.function:
                    payload = self.functions.call(expr.function, payload)
                elif expr.nested or expr.from_type != expr.to_type:
                    payload = self._nested_convert(
                        payload, expr.from_type, expr.to_type, None, edge, tracker, f"{path}.{expr.item}"
                    )
                return {expr.target: payload}

        raise ConversionError(
            f"variant {variant!r} of {edge.container} has no conversion from {edge.source.name} to {edge.target.name}"
        )

    def _nested_convert(
        self,
        value: Any,
        from_type: Optional[str],
        to_type: Optional[str],
        hint: Optional[str],
        edge: ConversionEdge,
        tracker: Optional[ConversionTracker],
        path: str,
    ) -> Any:
        if value is None:
            return None
        if hint == "list" and isinstance(value, list):
            return [
                self._nested_convert(v, from_type, to_type, None, edge, tracker, f"{path}[{i}]")
                for i, v in enumerate(value)
            ]

        src = base_type(from_type)
        dst = base_type(to_type)

        converter = self.functions.type_converter(src, dst)
        if converter is not None:
            try:
                return converter(value)
            except ConversionError:
                raise
            except Exception as exc:
                raise ConversionError(
                    f"type converter from {src} to {dst} failed at {path or 'value'}: {exc}", http_status_code=500
                ) from exc

        nested = self._nested.get(dst) if src == dst else None
        if nested is not None:
            return nested.convert(value, edge.source.name, edge.target.name, tracker=tracker, path=path)

        if dst in _COERCIBLE:
            try:
                return _COERCIBLE[dst](value)
            except (TypeError, ValueError) as exc:
                raise ConversionError(f"cannot convert {path or 'value'} from {src} to {dst}: {exc}") from exc

        if src == dst:
            return value

        raise ConversionError(
            f"no conversion registered from {from_type} to {to_type} ({edge.container} {edge.key[0]} -> {edge.key[1]})",
            http_status_code=500,
        )
