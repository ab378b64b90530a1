"""Middleware personalizado para o BeautyHQ Backend."""

import logging
import time

from django.http import HttpRequest, HttpResponse
from django.utils.deprecation import MiddlewareMixin

from .logging_utils import clear_logging_context, get_request_id, setup_logging_context

logger = logging.getLogger(__name__)


def _business_label(request: HttpRequest):
    principal = getattr(request, "principal", None)
    return getattr(principal, "business_id", None)


class RequestLoggingMiddleware(MiddlewareMixin):
    """
    Middleware para logging de requests com contexto estruturado.

    Funcionalidades:
    - Adiciona X-Request-ID único para cada request (ou propaga o recebido)
    - Configura contexto de logging para toda a request
    - Loga início e fim de cada request com o tempo de resposta
    """

    def process_request(self, request: HttpRequest) -> None:
        request_id = request.headers.get("X-Request-ID") or get_request_id()
        request.request_id = request_id

        setup_logging_context(request)
        request.start_time = time.time()

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "endpoint": request.path,
                "user_agent": request.headers.get("User-Agent", ""),
                "remote_addr": self._get_client_ip(request),
            },
        )

    def process_response(
        self, request: HttpRequest, response: HttpResponse
    ) -> HttpResponse:
        duration_ms = None
        if hasattr(request, "start_time"):
            duration_ms = round((time.time() - request.start_time) * 1000, 2)

        if hasattr(request, "request_id"):
            response["X-Request-ID"] = request.request_id

        user = getattr(request, "user", None)
        logger.info(
            "Request completed",
            extra={
                "request_id": getattr(request, "request_id", "unknown"),
                "method": request.method,
                "endpoint": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": (
                    str(user.id) if user is not None and user.is_authenticated else None
                ),
                "business_id": _business_label(request),
            },
        )

        clear_logging_context()
        return response

    def process_exception(self, request: HttpRequest, exception: Exception) -> None:
        duration_ms = None
        if hasattr(request, "start_time"):
            duration_ms = round((time.time() - request.start_time) * 1000, 2)

        logger.error(
            f"Request failed with exception: {exception}",
            extra={
                "request_id": getattr(request, "request_id", "unknown"),
                "method": request.method,
                "endpoint": request.path,
                "duration_ms": duration_ms,
                "exception_type": type(exception).__name__,
                "business_id": _business_label(request),
            },
            exc_info=True,
        )

    def _get_client_ip(self, request: HttpRequest) -> str:
        """Obter IP do cliente considerando proxies."""
        x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forwarded_for:
            return x_forwarded_for.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR", "unknown")
