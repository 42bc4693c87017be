from __future__ import annotations

from fastapi import FastAPI

from schemaevo.api.endpoints import conversion, generation, health
from schemaevo.api.endpoints import metrics as metrics_ep
from schemaevo.api.middleware.error_shaping import SafeErrorMiddleware
from schemaevo.api.middleware.request_context import RequestContextMiddleware
from schemaevo.core.config import configure_logging, get_settings

configure_logging(get_settings())

app = FastAPI(
    title="schemaevo API",
    version="0.1.0",
)

# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware → RequestContext → handler
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.include_router(health.router)
app.include_router(metrics_ep.router)
app.include_router(generation.router)
app.include_router(conversion.router)
