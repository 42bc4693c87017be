from __future__ import annotations

from fastapi import APIRouter, HTTPException

from schemaevo.api.errors import to_http
from schemaevo.api.models import ConvertRequest, CrdRequest
from schemaevo.core.config import get_settings
from schemaevo.core.conversion.runtime import ConversionRuntime, FunctionRegistry
from schemaevo.core.errors import SchemaEvoError
from schemaevo.core.k8s import ConversionDispatcher, merged_crd
from schemaevo.core.pipeline import generate_container

router = APIRouter(prefix="/api/v1", tags=["conversion"])


@router.post("/convert")
def convert(req: ConvertRequest):
    """Answers a ConversionReview for the given container.

    Conversion failures are reported inside the returned review; only an
    unusable container description is an HTTP error. Functions named by the
    description are only imported from SCHEMAEVO_FUNCTION_MODULES.
    """
    settings = get_settings()
    functions = FunctionRegistry(allowed_modules=settings.function_modules)
    try:
        result = generate_container(req.container)
        runtime = ConversionRuntime(result, functions)
        for nested_spec in req.nested:
            runtime.register_nested(ConversionRuntime(generate_container(nested_spec), runtime.functions))
        runtime.check_functions()
    except SchemaEvoError as e:
        raise to_http(e)

    try:
        dispatcher = ConversionDispatcher(result, runtime, track_conversions=settings.track_conversions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return dispatcher.try_convert(req.review)


@router.post("/crd")
def crd(req: CrdRequest):
    settings = get_settings()
    try:
        result = generate_container(req.container)
        return merged_crd(
            result,
            req.storage_version,
            webhook_url=req.webhook_url,
            track_conversions=settings.track_conversions,
        )
    except SchemaEvoError as e:
        raise to_http(e)
