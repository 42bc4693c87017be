from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from schemaevo.api.errors import http_status_for
from schemaevo.core.errors import SchemaEvoError

log = logging.getLogger("schemaevo.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Domain errors that escape a handler become structured 4xx bodies
    - Anything else is a generic 500; the traceback stays in the server log
    - request_id is preserved in both cases
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except SchemaEvoError as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.warning("Domain error: %s rid=%s path=%s", str(e), rid, request.url.path)
            payload = {"detail": e.to_dict()}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=http_status_for(e), content=payload)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
