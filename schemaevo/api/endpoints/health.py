from __future__ import annotations

from fastapi import APIRouter

from schemaevo.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health")
def health_check():
    inc_named("health")
    return {"status": "healthy"}


@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive"}
