"""Request-scoped context for audit capture and log correlation.

The HTTP middleware stores the caller's ``User-Agent`` and a correlation id
in context variables; the audit log reads the user agent from here when it
is available and stores ``None`` otherwise.
"""
from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

request_id_context: ContextVar[str | None] = ContextVar("request_id", default=None)
user_agent_context: ContextVar[str | None] = ContextVar("user_agent", default=None)


def current_request_id() -> str | None:
    return request_id_context.get()


def current_user_agent() -> str | None:
    """Return the calling environment's user agent, if one is known."""

    value = user_agent_context.get()
    return value or None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Populate request id and user agent context for the duration of a request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_token = request_id_context.set(request_id)
        agent_token = user_agent_context.set(request.headers.get("user-agent"))
        try:
            response = await call_next(request)
        finally:
            user_agent_context.reset(agent_token)
            request_id_context.reset(request_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "current_request_id",
    "current_user_agent",
    "request_id_context",
    "user_agent_context",
]
