"""
Correlation id middleware.

Every request gets a correlation id, taken from the
X-Correlation-ID header when the caller sent a usable one. It is
stored on request.state, where RequestContext picks it up, so all
audit events emitted while serving one request share the same id.
"""

from starlette.middleware.base import BaseHTTPMiddleware

from cylinder_audit.services.correlation import new_correlation_id

CORRELATION_HEADER = "X-Correlation-ID"

# Width of audit_logs.correlation_id
MAX_CORRELATION_ID_LENGTH = 64


class CorrelationIdMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request, call_next):
        incoming = request.headers.get(CORRELATION_HEADER, "").strip()
        if incoming and len(incoming) <= MAX_CORRELATION_ID_LENGTH:
            correlation_id = incoming
        else:
            correlation_id = new_correlation_id()
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
