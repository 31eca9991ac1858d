"""
FastAPI middleware: request logging context and Prometheus HTTP metrics
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import LoggingConfig
from app.core.metrics import (http_errors_total, http_request_duration_seconds,
                              http_requests_total)

logger = LoggingConfig.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Probes are not logged per request
QUIET_PATHS = ("/health", "/health/readiness", "/metrics")


def _route_template(request: Request) -> str:
    """Route template (e.g. /boms/{bom_id}) so ids do not explode label cardinality"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _architecture_id(request: Request) -> Optional[str]:
    """Architecture addressed by the request, when its path names one"""
    params = request.path_params
    return params.get("arch_id") if params else None


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Binds request id, method and path to every log record of the request"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER.lower()) or uuid.uuid4().hex
        LoggingConfig.set_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        quiet = request.url.path in QUIET_PATHS
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                exc_info=True,
                extra={
                    "error_type": type(e).__name__,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            if not quiet or response.status_code >= 400:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "status_code": response.status_code,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                        "architecture": _architecture_id(request),
                    },
                )
            return response
        finally:
            LoggingConfig.clear_context()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and errors and times them per route template"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        status_code = 500
        error_type = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            labels = {
                "method": request.method,
                "endpoint": _route_template(request),
                "status_code": str(status_code),
            }
            http_requests_total.labels(**labels).inc()
            http_request_duration_seconds.labels(**labels).observe(time.perf_counter() - start)
            if status_code >= 400:
                http_errors_total.labels(**labels, error_type=error_type or f"http_{status_code}").inc()
