from __future__ import annotations

from typing import Any, Dict, List, Optional

from schemaevo.core.actions.models import KubernetesOptions
from schemaevo.core.errors import ActionValidationError, Diagnostic, ErrorCategory
from schemaevo.core.kinds import ContainerKind
from schemaevo.core.pipeline import GenerationResult
from schemaevo.core.renderers.schema_gen import definition_schema

CRD_API_VERSION = "apiextensions.k8s.io/v1"


def _options(result: GenerationResult) -> KubernetesOptions:
    spec = result.spec
    problems: List[Diagnostic] = []
    if spec.k8s is None:
        problems.append(
            Diagnostic(
                category=ErrorCategory.ARGUMENT,
                code="k8s.missing_options",
                message="the container declares no `k8s` options",
            )
        )
    elif result.container.kind is not ContainerKind.STRUCT:
        problems.append(
            Diagnostic(
                category=ErrorCategory.ARGUMENT,
                code="k8s.not_a_struct",
                message="only struct containers can be served as custom resources",
            )
        )
    if problems:
        raise ActionValidationError(container=result.name, diagnostics=problems)
    return spec.k8s


def resource_names(result: GenerationResult) -> Dict[str, Any]:
    opts = _options(result)
    kind = opts.kind or result.name
    plural = opts.plural or f"{kind.lower()}s"
    names: Dict[str, Any] = {
        "kind": kind,
        "plural": plural,
        "singular": opts.singular or kind.lower(),
    }
    if opts.shortnames:
        names["shortNames"] = list(opts.shortnames)
    return names


def _version_schema(result: GenerationResult, version_name: str, track_conversions: bool) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {"spec": definition_schema(result.definition(version_name))},
        "required": ["spec"],
    }
    if track_conversions:
        schema["properties"]["status"] = {
            "type": "object",
            "properties": {
                "changedValues": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "jsonPath": {"type": "string"},
                            "value": {"x-kubernetes-preserve-unknown-fields": True},
                        },
                        "required": ["jsonPath"],
                    },
                }
            },
            "x-kubernetes-preserve-unknown-fields": True,
        }
    return schema


def merged_crd(
    result: GenerationResult,
    storage_version: Optional[str] = None,
    *,
    webhook_url: Optional[str] = None,
    track_conversions: bool = False,
) -> Dict[str, Any]:
    """One CustomResourceDefinition serving every version of `result`.

    `storage_version` defaults to the container's `k8s.storage_version`, then
    to the latest declared version. Exactly one version is marked as storage.
    """

    opts = _options(result)
    storage = result.registry.get(storage_version or opts.storage_version or result.registry.latest.name)
    names = resource_names(result)

    versions: List[Dict[str, Any]] = []
    for version in result.registry:
        entry: Dict[str, Any] = {
            "name": version.name,
            "served": True,
            "storage": version.name == storage.name,
            "schema": {"openAPIV3Schema": _version_schema(result, version.name, track_conversions)},
        }
        if version.deprecated:
            entry["deprecated"] = True
            entry["deprecationWarning"] = version.deprecation_note
        if track_conversions:
            entry["subresources"] = {"status": {}}
        versions.append(entry)

    spec: Dict[str, Any] = {
        "group": opts.group,
        "names": names,
        "scope": "Namespaced" if opts.namespaced else "Cluster",
        "versions": versions,
    }
    if webhook_url:
        spec["conversion"] = {
            "strategy": "Webhook",
            "webhook": {
                "conversionReviewVersions": ["v1"],
                "clientConfig": {"url": webhook_url},
            },
        }
    else:
        spec["conversion"] = {"strategy": "None"}

    return {
        "apiVersion": CRD_API_VERSION,
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{names['plural']}.{opts.group}"},
        "spec": spec,
    }
