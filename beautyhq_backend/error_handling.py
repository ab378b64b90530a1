"""
Sistema de tratamento de erros padronizado para o BeautyHQ Backend.

Este módulo fornece:
- Códigos de erro padronizados
- Exceções de negócio e de isolamento por negócio (tenant)
- Exception handler customizado para DRF
- Logging estruturado de erros com sanitização de dados sensíveis
"""

import logging
import traceback
import uuid
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    Throttled,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

# =====================================================
# CÓDIGOS DE ERRO PADRONIZADOS
# =====================================================


class ErrorCodes:
    """Códigos de erro padronizados do sistema."""

    # Erros de Autenticação (E001-E099)
    AUTH_REQUIRED = "E001"
    AUTH_INVALID_TOKEN = "E002"
    AUTH_EXPIRED_TOKEN = "E003"
    AUTH_INSUFFICIENT_PERMISSIONS = "E004"

    # Erros de Validação (E100-E199)
    VALIDATION_REQUIRED_FIELD = "E100"
    VALIDATION_INVALID_FORMAT = "E101"
    VALIDATION_INVALID_VALUE = "E102"
    VALIDATION_DUPLICATE_VALUE = "E103"
    VALIDATION_CONSTRAINT_VIOLATION = "E104"
    VALIDATION_INVALID_RECURRENCE = "E105"

    # Erros de Negócio (E200-E299)
    BUSINESS_TENANT_NOT_FOUND = "E200"
    BUSINESS_TENANT_INACTIVE = "E201"
    BUSINESS_APPOINTMENT_CONFLICT = "E202"
    BUSINESS_NO_ASSOCIATION = "E206"
    BUSINESS_ACCESS_DENIED = "E207"
    BUSINESS_LOCATION_NOT_FOUND = "E208"

    # Erros de Sistema (E300-E399)
    SYSTEM_INTERNAL_ERROR = "E300"
    SYSTEM_DATABASE_ERROR = "E301"
    SYSTEM_RATE_LIMIT_EXCEEDED = "E304"

    # Erros de Recursos (E400-E499)
    RESOURCE_NOT_FOUND = "E400"
    RESOURCE_ACCESS_DENIED = "E402"
    RESOURCE_MODIFICATION_DENIED = "E403"


# =====================================================
# EXCEÇÕES CUSTOMIZADAS
# =====================================================


class BeautyHQError(APIException):
    """Exceção base para erros específicos do BeautyHQ."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.SYSTEM_INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        self.detail = message
        super().__init__(message)


class BusinessError(BeautyHQError):
    """Erro de regra de negócio."""

    def __init__(
        self, message: str, code: str, details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code=code,
            details=details,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class TenantError(BeautyHQError):
    """Erro relacionado ao negócio (tenant) do chamador."""

    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.BUSINESS_TENANT_NOT_FOUND,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=code,
            details=details,
            status_code=self.default_status,
        )


class NoBusinessAssociated(TenantError):
    """Usuário de negócio sem businessId: conta mal provisionada."""

    default_status = status.HTTP_403_FORBIDDEN

    def __init__(self, user_id: Any = None):
        super().__init__(
            "Usuário não está associado a nenhum negócio.",
            code=ErrorCodes.BUSINESS_NO_ASSOCIATION,
            details={"user_id": user_id} if user_id is not None else None,
        )


class TenantAccessDenied(TenantError):
    """Tentativa de ler/escrever dados de outro negócio."""

    default_status = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Acesso negado: recurso pertence a outro negócio."):
        super().__init__(message, code=ErrorCodes.BUSINESS_ACCESS_DENIED)


class BusinessNotFound(TenantError):
    default_status = status.HTTP_404_NOT_FOUND

    def __init__(self, business_id: Any):
        super().__init__(
            "Negócio não encontrado.",
            code=ErrorCodes.BUSINESS_TENANT_NOT_FOUND,
            details={"business_id": business_id},
        )


class LocationNotFound(TenantError):
    default_status = status.HTTP_404_NOT_FOUND

    def __init__(
        self,
        message: str = "Nenhuma localização encontrada. Crie uma localização primeiro.",
        location_id: Any = None,
    ):
        super().__init__(
            message,
            code=ErrorCodes.BUSINESS_LOCATION_NOT_FOUND,
            details={"location_id": location_id} if location_id is not None else None,
        )


# =====================================================
# MAPEAMENTO DE EXCEÇÕES PARA CÓDIGOS
# =====================================================

EXCEPTION_CODE_MAPPING = {
    NotAuthenticated: ErrorCodes.AUTH_REQUIRED,
    AuthenticationFailed: ErrorCodes.AUTH_INVALID_TOKEN,
    PermissionDenied: ErrorCodes.AUTH_INSUFFICIENT_PERMISSIONS,
    NotFound: ErrorCodes.RESOURCE_NOT_FOUND,
    MethodNotAllowed: ErrorCodes.RESOURCE_MODIFICATION_DENIED,
    ValidationError: ErrorCodes.VALIDATION_INVALID_VALUE,
    Throttled: ErrorCodes.SYSTEM_RATE_LIMIT_EXCEEDED,
    Http404: ErrorCodes.RESOURCE_NOT_FOUND,
    DjangoValidationError: ErrorCodes.VALIDATION_CONSTRAINT_VIOLATION,
}

# Exceções esperadas: logadas sem stack trace
EXPECTED_EXCEPTIONS = (
    ValidationError,
    NotFound,
    PermissionDenied,
    NotAuthenticated,
    AuthenticationFailed,
    TenantError,
    BusinessError,
)


# =====================================================
# SANITIZAÇÃO DE DADOS SENSÍVEIS
# =====================================================

SENSITIVE_FIELDS = {
    "password",
    "token",
    "secret",
    "key",
    "auth",
    "authorization",
    "card_number",
    "cvv",
    "phone",
    "email",
    "session_id",
}


def sanitize_data(data: Any) -> Any:
    """Remove dados sensíveis de dicionários, listas e strings."""
    if isinstance(data, dict):
        return {
            key: (
                "[REDACTED]"
                if any(sensitive in str(key).lower() for sensitive in SENSITIVE_FIELDS)
                else sanitize_data(value)
            )
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [sanitize_data(item) for item in data]
    elif isinstance(data, str) and len(data) > 100:
        return data[:100] + "... [TRUNCATED]"
    return data


# =====================================================
# LOGGING ESTRUTURADO DE ERROS
# =====================================================


def log_error(
    exception: Exception,
    request=None,
    user=None,
    business_id=None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Loga erro de forma estruturada e retorna um ID único do erro.

    Returns:
        str: ID único do erro para referência
    """
    error_id = str(uuid.uuid4())[:8]

    error_context: Dict[str, Any] = {
        "error_id": error_id,
        "error_type": type(exception).__name__,
        "error_message": str(exception),
        "error_code": getattr(exception, "code", "UNKNOWN"),
    }

    if request is not None:
        error_context.update(
            {
                "method": request.method,
                "path": request.path,
                "user_agent": request.META.get("HTTP_USER_AGENT", ""),
                "remote_addr": request.META.get("REMOTE_ADDR", ""),
                "query_params": sanitize_data(dict(request.GET)),
            }
        )
        if hasattr(request, "data"):
            try:
                error_context["request_data"] = sanitize_data(dict(request.data))
            except (TypeError, ValueError):
                error_context["request_data"] = "[UNPARSEABLE]"

    if user is not None and getattr(user, "id", None):
        error_context.update(
            {
                "user_id": user.id,
                "username": getattr(user, "username", ""),
                "role": getattr(user, "role", ""),
            }
        )

    if business_id is not None:
        error_context["business_id"] = business_id

    if extra_context:
        error_context.update(sanitize_data(extra_context))

    expected = isinstance(exception, EXPECTED_EXCEPTIONS)
    if not expected:
        error_context["stack_trace"] = traceback.format_exc()

    log = logger.warning if expected else logger.error
    log(
        f"Error {error_id}: {exception}",
        extra=error_context,
        exc_info=not expected,
    )

    return error_id


# =====================================================
# EXCEPTION HANDLER CUSTOMIZADO
# =====================================================


def custom_exception_handler(exc, context):
    """
    Exception handler customizado para padronizar respostas de erro.

    Retorna respostas no formato:
    {
        "error": {
            "code": "E001",
            "message": "Mensagem de erro",
            "details": {...},
            "error_id": "abc12345"
        }
    }
    """
    response = exception_handler(exc, context)

    request = context.get("request")
    user = getattr(request, "user", None) if request else None
    principal = getattr(request, "principal", None) if request else None

    error_id = log_error(
        exception=exc,
        request=request,
        user=user,
        business_id=getattr(principal, "business_id", None),
        extra_context={
            "view": (
                getattr(context.get("view"), "__class__", type(None)).__name__
                if context.get("view")
                else ""
            )
        },
    )

    # Erro não tratado pelo DRF: nunca expor detalhes internos ao cliente
    if response is None:
        return Response(
            {
                "error": {
                    "code": ErrorCodes.SYSTEM_INTERNAL_ERROR,
                    "message": "Erro interno do servidor",
                    "details": {},
                    "error_id": error_id,
                }
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, BeautyHQError):
        error_code = exc.code
    else:
        error_code = EXCEPTION_CODE_MAPPING.get(
            type(exc), ErrorCodes.SYSTEM_INTERNAL_ERROR
        )

    error_message = str(getattr(exc, "detail", exc))
    error_details: Dict[str, Any] = {}

    if isinstance(exc, ValidationError):
        if isinstance(exc.detail, dict):
            error_details = exc.detail
            field_errors = []
            for field, errors in exc.detail.items():
                if isinstance(errors, list):
                    field_errors.append(f"{field}: {', '.join(map(str, errors))}")
                else:
                    field_errors.append(f"{field}: {str(errors)}")
            error_message = "Dados inválidos: " + "; ".join(field_errors)
        elif isinstance(exc.detail, list):
            error_message = "; ".join(map(str, exc.detail))

    if isinstance(exc, BeautyHQError):
        error_details.update(exc.details)

    response.data = {
        "error": {
            "code": error_code,
            "message": error_message,
            "details": error_details,
            "error_id": error_id,
        }
    }
    return response


# =====================================================
# UTILITÁRIOS
# =====================================================


def validate_required_fields(data: Dict[str, Any], required_fields: list) -> None:
    """Valida se campos obrigatórios estão presentes."""
    missing_fields = [field for field in required_fields if not data.get(field)]

    if missing_fields:
        raise ValidationError(
            {field: "Este campo é obrigatório." for field in missing_fields}
        )
