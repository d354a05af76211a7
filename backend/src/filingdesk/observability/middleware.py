"""Request correlation middleware.

Binds a request id (the caller's X-Request-ID when present) for the
lifetime of the request, writes one access line when the response is ready
and echoes the id back. Health checks are not logged.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import actor_id_var, generate_request_id, request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
UNLOGGED_PATHS = frozenset({"/health"})


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request_token = request_id_var.set(request_id)
        actor_token = actor_id_var.set(None)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{request.method} {request.url.path} raised",
                extra={"method": request.method, "path": request.url.path},
            )
            raise
        else:
            if request.url.path not in UNLOGGED_PATHS:
                logger.info(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    },
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            actor_id_var.reset(actor_token)
            request_id_var.reset(request_token)
