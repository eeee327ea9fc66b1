from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from menuhub.core.request_context import current_context, request_scope

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with request_scope(request_id):
            status_code = 500
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                tenant = getattr(request.state, "tenant", None)
                user = getattr(request.state, "user", None)
                logger.info(
                    "request completed",
                    extra={
                        "tenant_id": getattr(tenant, "id", None) or current_context().tenant_id,
                        "user_id": getattr(user, "id", None),
                        "endpoint": request.url.path,
                        "method": request.method,
                        "status_code": status_code,
                        "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                    },
                )
