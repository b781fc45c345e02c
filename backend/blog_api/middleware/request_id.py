"""
Modern Blog API — Request ID Middleware
=========================================

What:  Gives every request a correlation id and echoes it in `X-Request-ID`.
How:   Uses the client's X-Request-ID when present (the SPA can then match its
       own error reports to server logs), otherwise a short random id. The id
       lives in a ContextVar so loggers and error handlers can read it without
       access to the request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied ids are truncated to keep log lines bounded
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        rid = rid[:MAX_REQUEST_ID_LENGTH]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
