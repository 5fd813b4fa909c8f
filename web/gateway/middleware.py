"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request identifier. The identifier
is read from the incoming ``X-Request-ID`` header when provided by the
client, or generated server-side (UUID4) otherwise. It is stored on
``request.state`` and in a context variable so code running downstream,
log filters included, can read it without passing the value explicitly.
The response carries the same id in its ``X-Request-ID`` header.
"""

import contextvars
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("store.gateway")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Sets and returns a per-request identifier.

    Attributes:
        HEADER (str): Header name carrying the id, both ways.
    """

    HEADER = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.HEADER) or str(uuid.uuid4())
        request.state.request_id = rid
        token = REQUEST_ID_CTX.set(rid)
        try:
            response = await call_next(request)
        finally:
            logger.info("request handled", extra={"path": request.url.path, "method": request.method})
            REQUEST_ID_CTX.reset(token)
        response.headers[self.HEADER] = rid
        return response
