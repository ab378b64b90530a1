"""
Resolução única de identidade.

Tokens JWT (apps mobile) e sessão (painel web) são autenticados pelo DRF e
terminam no mesmo `request.user`; este módulo converte esse usuário num
`TenantPrincipal`, consumido por permissões e pelo filtro de escopo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TenantPrincipal:
    user_id: int
    role: str
    business_id: Optional[int]
    is_platform_admin: bool

    @property
    def can_read_unscoped(self) -> bool:
        return self.is_platform_admin

    def has_permission(self, permission: str) -> bool:
        from users.permissions import ROLE_PERMISSIONS

        if self.is_platform_admin:
            return True
        return permission in ROLE_PERMISSIONS.get(self.role, set())

    def as_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "role": self.role,
            "businessId": self.business_id,
            "isPlatformAdmin": self.is_platform_admin,
        }


def principal_from_user(user) -> TenantPrincipal:
    is_admin = bool(getattr(user, "is_platform_admin", False))
    role = getattr(user, "role", "") or ""
    if user.is_superuser and not role:
        role = "PLATFORM_ADMIN"
    return TenantPrincipal(
        user_id=user.id,
        role=role,
        business_id=getattr(user, "business_id", None),
        is_platform_admin=is_admin,
    )


def get_principal(request) -> TenantPrincipal:
    """
    Retorna o principal do request autenticado, calculado uma única vez.

    O valor também é gravado no HttpRequest subjacente para que middlewares
    e filtros de logging o enxerguem.
    """
    cached = getattr(request, "principal", None)
    if cached is not None:
        return cached

    principal = principal_from_user(request.user)
    request.principal = principal
    django_request = getattr(request, "_request", None)
    if django_request is not None:
        django_request.principal = principal
    return principal
