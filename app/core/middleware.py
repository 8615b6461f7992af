import time
import logging
import uuid
from typing import Callable, List, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging_utils import error_tracker, set_request_id, reset_request_id

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_PATHS = ["/health", "/docs", "/openapi.json", "/redoc"]


def client_ip(request: Request) -> str:
    """IP клиента с учётом прокси"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Логирует каждый запрос и проставляет короткий X-Request-ID.

    id кладётся в контекст логирования, поэтому бизнес-события внутри
    запроса (booking_created и т.п.) пишутся с тем же request_id.
    """

    def __init__(self, app: ASGIApp, exclude_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or DEFAULT_EXCLUDE_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        token = set_request_id(request_id)
        try:
            response = await self._timed(request, call_next)
        finally:
            reset_request_id(token)

        response.headers["X-Request-ID"] = request_id
        return response

    async def _timed(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params) or None,
                "client_ip": client_ip(request),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "error_type": type(e).__name__,
                },
            )
            raise

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """JSON API: запрещаем фреймы, sniffing и внешние ресурсы"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        # swagger UI грузит свои скрипты
        if request.url.path in ("/docs", "/redoc"):
            return response
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class SlowRequestMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, threshold_seconds: float = 1.0):
        super().__init__(app)
        self.threshold_seconds = threshold_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - started

        if duration > self.threshold_seconds:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration:.2f}s",
                extra={
                    "path": request.url.path,
                    "duration_ms": round(duration * 1000, 2),
                    "threshold_ms": self.threshold_seconds * 1000,
                    "status_code": response.status_code,
                    "category": "performance",
                },
            )
        return response


class ErrorTrackingMiddleware(BaseHTTPMiddleware):
    """Считает 4xx/5xx ответы и необработанные исключения в error_tracker"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = {"method": request.method, "path": request.url.path}
        try:
            response = await call_next(request)
        except Exception as e:
            error_tracker.track_error(f"UNHANDLED_{type(e).__name__}", str(e), context)
            raise

        if response.status_code >= 400:
            error_tracker.track_error(
                f"HTTP_{response.status_code}",
                f"HTTP {response.status_code} response",
                {**context, "status_code": response.status_code},
            )
        return response


def setup_middleware(app, config: dict = None):
    """
    Подключает middleware. Starlette вызывает их в обратном порядке добавления,
    поэтому логирование запросов добавляется последним.
    """
    config = config or {}

    app.add_middleware(ErrorTrackingMiddleware)
    app.add_middleware(
        SlowRequestMiddleware,
        threshold_seconds=config.get("slow_request_threshold", 1.0),
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RequestLoggingMiddleware,
        exclude_paths=config.get("exclude_paths", DEFAULT_EXCLUDE_PATHS),
    )

    logger.info("Middleware configured")
