"""Generation pipeline: validate → chains → per-version definitions → edges.

Every step is a pure function of the container description. Module
generation runs containers independently; one container failing never affects
its siblings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from schemaevo.core.actions.models import ContainerOptions, ContainerSpec, ModuleSpec
from schemaevo.core.actions.validation import ValidatedContainer, validate_container
from schemaevo.core.assembly.assembler import ContainerDefinition, assemble
from schemaevo.core.chain.builder import ItemChain, build_item_chains
from schemaevo.core.chain.status import status_to_dict
from schemaevo.core.conversion.expressions import ConversionEdge
from schemaevo.core.conversion.generator import generate_edges
from schemaevo.core.conversion.resolver import compose_edges, conversion_path
from schemaevo.core.errors import (
    ActionValidationError,
    Diagnostic,
    ErrorCategory,
    IrreversibleConversionError,
    NameCollisionError,
    SchemaEvoError,
)
from schemaevo.core.observability.metrics import record_generation
from schemaevo.core.versions.registry import RegisteredVersion, VersionRegistry

log = logging.getLogger("schemaevo.pipeline")


@dataclass(frozen=True)
class GenerationResult:
    container: ValidatedContainer
    chains: Tuple[ItemChain, ...]
    definitions: Dict[str, ContainerDefinition]
    edges: Dict[Tuple[str, str], ConversionEdge]

    @property
    def name(self) -> str:
        return self.container.name

    @property
    def registry(self) -> VersionRegistry:
        return self.container.registry

    @property
    def spec(self) -> ContainerSpec:
        return self.container.spec

    def definition(self, version: Union[str, RegisteredVersion]) -> ContainerDefinition:
        return self.definitions[self.registry.get(version).name]

    def edge(self, source: str, target: str) -> ConversionEdge:
        return self.edges[(source, target)]

    def path(self, current: str, desired: str) -> List[RegisteredVersion]:
        return conversion_path(current, desired, self.registry)

    def edges_between(self, current: str, desired: str) -> List[ConversionEdge]:
        return compose_edges(self.edges, current, desired, self.registry)

    def chain_table(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            chain.declared_name: {v.name: status_to_dict(s) for v, s in chain.statuses(self.registry)}
            for chain in self.chains
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "container": self.name,
            "kind": self.container.kind.value,
            "versions": self.registry.names(),
            "definitions": [d.to_dict() for d in self.definitions.values()],
            "edges": [e.to_dict() for e in self.edges.values()],
        }


def _outcome(exc: SchemaEvoError) -> str:
    if isinstance(exc, NameCollisionError):
        return "collision"
    if isinstance(exc, IrreversibleConversionError):
        return "irreversible"
    return "invalid"


def generate_validated(container: ValidatedContainer) -> GenerationResult:
    chains = build_item_chains(container)
    definitions = {v.name: assemble(container, chains, v) for v in container.registry}
    edges = generate_edges(container, chains, definitions=definitions)
    return GenerationResult(
        container=container,
        chains=tuple(chains),
        definitions=definitions,
        edges=edges,
    )


def generate_container(spec: ContainerSpec) -> GenerationResult:
    kind = spec.kind.value
    try:
        validated = validate_container(spec)
        result = generate_validated(validated)
    except SchemaEvoError as exc:
        record_generation(kind, _outcome(exc))
        log.warning("generation failed for %s: %s", spec.name, exc)
        raise

    record_generation(kind, "ok")
    log.info(
        "generated %s: %d versions, %d edges",
        spec.name,
        len(result.definitions),
        len(result.edges),
    )
    return result


@dataclass
class ModuleResult:
    module: str
    results: Dict[str, GenerationResult] = field(default_factory=dict)
    failures: Dict[str, SchemaEvoError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "containers": {name: r.to_dict() for name, r in self.results.items()},
            "failures": {name: e.to_dict() for name, e in self.failures.items()},
        }


def _module_container(module: ModuleSpec, spec: ContainerSpec) -> ContainerSpec:
    options = ContainerOptions(
        allow_unsorted=module.options.allow_unsorted or spec.options.allow_unsorted,
        skip_from=module.options.skip_from or spec.options.skip_from,
    )
    return spec.with_versions(module.versions).model_copy(update={"options": options})


def generate_module(module: ModuleSpec) -> ModuleResult:
    out = ModuleResult(module=module.name)

    for spec in module.containers:
        if spec.versions:
            exc = ActionValidationError(
                container=spec.name,
                diagnostics=[
                    Diagnostic(
                        category=ErrorCategory.REFERENCE,
                        code="module.container_declares_versions",
                        message="containers inside a module must not declare their own versions",
                    )
                ],
            )
            record_generation(spec.kind.value, "invalid")
            out.failures[spec.name] = exc
            continue

        try:
            out.results[spec.name] = generate_container(_module_container(module, spec))
        except SchemaEvoError as exc:
            out.failures[spec.name] = exc

    log.info(
        "module %s: %d containers generated, %d failed",
        module.name,
        len(out.results),
        len(out.failures),
    )
    return out
