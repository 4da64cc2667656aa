# -*- coding: utf-8 -*-
"""
Request tracking middleware.
"""
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .config import settings

# Context variable for request ID (accessible across async calls)
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request (and its log lines) with a request ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(settings.REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        try:
            response = await call_next(request)
            response.headers[settings.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_ctx.reset(token)
