"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request identifier. The identifier is
read from the incoming ``X-Request-ID`` header when provided by the client,
or generated server-side (UUIDv4) otherwise. The id is stored on
``request.state`` and in a context variable so code running downstream
(outbound HTTP adapters, log filters) can access it without passing the value
explicitly. The response carries the same id in the ``X-Request-ID`` header.

Unhandled exceptions are logged with the request id and answered with a
generic 500 that still carries the header. A second middleware rejects
oversized API bodies before they are parsed.
"""

import contextvars
import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from . import settings

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("storefront.http")


async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = rid
    token = REQUEST_ID_CTX.set(rid)
    try:
        response = await call_next(request)
    except Exception:
        # logged while the request id is still bound, answered with the id header
        logger.exception("unhandled error", extra={"path": request.url.path})
        response = JSONResponse({"error": "Server error"}, status_code=500)
    finally:
        REQUEST_ID_CTX.reset(token)
    logger.info(
        "request handled",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "request_id": rid,
        },
    )
    response.headers[REQUEST_ID_HEADER] = rid
    return response


async def size_limit_middleware(request: Request, call_next):
    clen = request.headers.get("content-length")
    if clen and clen.isdigit() and int(clen) > settings.API_MAX_BYTES:
        return JSONResponse({"error": "Payload too large"}, status_code=413)
    return await call_next(request)
