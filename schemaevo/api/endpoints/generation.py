from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from schemaevo.api.errors import to_http
from schemaevo.api.models import PathsRequest, PathsResponse, RenderResponse
from schemaevo.core.actions.models import ContainerSpec, ModuleSpec
from schemaevo.core.config import get_settings
from schemaevo.core.conversion.resolver import path_names, paths_table
from schemaevo.core.errors import SchemaEvoError
from schemaevo.core.pipeline import generate_container, generate_module
from schemaevo.core.renderers import RENDER_FORMATS, get_renderer

router = APIRouter(prefix="/api/v1", tags=["generation"])


@router.post("/generate")
def generate(spec: ContainerSpec):
    try:
        result = generate_container(spec)
    except SchemaEvoError as e:
        raise to_http(e)
    return result.to_dict()


@router.post("/generate/module")
def generate_module_endpoint(module: ModuleSpec):
    # Per-container failures are part of the body, not an HTTP error.
    return generate_module(module).to_dict()


@router.post("/chains")
def chains(spec: ContainerSpec):
    try:
        result = generate_container(spec)
    except SchemaEvoError as e:
        raise to_http(e)
    return {"container": result.name, "versions": result.registry.names(), "chains": result.chain_table()}


@router.post("/render", response_model=RenderResponse)
def render(spec: ContainerSpec, format: Optional[str] = Query(default=None)):
    fmt = (format or get_settings().render_format).lower()
    try:
        renderer = get_renderer(fmt)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"unsupported format {fmt!r}; expected one of {', '.join(RENDER_FORMATS)}",
        )

    try:
        result = generate_container(spec)
    except SchemaEvoError as e:
        raise to_http(e)
    return RenderResponse(container=result.name, format=fmt, files=renderer.render(result))


@router.post("/paths", response_model=PathsResponse, response_model_exclude_none=True)
def paths(req: PathsRequest):
    try:
        result = generate_container(req.container)
        registry = result.registry
        if req.current is None and req.desired is None:
            return PathsResponse(container=result.name, versions=registry.names(), paths=paths_table(registry))
        if req.current is None or req.desired is None:
            raise HTTPException(status_code=400, detail="current and desired must be given together")
        return PathsResponse(
            container=result.name,
            versions=registry.names(),
            path=path_names(req.current, req.desired, registry),
        )
    except SchemaEvoError as e:
        raise to_http(e)
