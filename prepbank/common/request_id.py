"""Request id propagation and access logging."""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from prepbank.core.logging import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids are echoed into logs and audit rows; keep them short and printable
_ACCEPTED_ID_RE = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def incoming_request_id(request: Request) -> str:
    """Use the caller's id when it is well-formed, otherwise mint one."""
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    if _ACCEPTED_ID_RE.fullmatch(supplied):
        return supplied
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the request state and logging context; echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = incoming_request_id(request)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                extra={
                    "event": "request_failed",
                    "method": request.method,
                    "path": request.url.path,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            raise
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_completed",
            extra={
                "event": "request_completed",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response
