import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("loyaltyapi")

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/health", "/api/v1/health")


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로그 + 요청 ID 헤더"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        client = request.client.host if request.client else "-"
        quiet = path in QUIET_PATHS

        if not quiet:
            logger.info(f"[Request {request_id}] {method} {path} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error {request_id}] {method} {path} from {client}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        message = (
            f"[Response {request_id}] {method} {path} -> {response.status_code} "
            f"in {duration_ms:.1f}ms"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        elif not quiet:
            logger.info(message)
        return response
