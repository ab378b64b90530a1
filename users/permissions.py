from __future__ import annotations

from rest_framework.permissions import BasePermission

from users.identity import get_principal

# Capacidades por papel. Admins da plataforma têm todas.
ROLE_PERMISSIONS = {
    "PLATFORM_ADMIN": {
        "can_view_all_businesses",
        "can_manage_staff",
        "can_manage_clients",
        "can_manage_services",
        "can_manage_appointments",
    },
    "OWNER": {
        "can_manage_staff",
        "can_manage_clients",
        "can_manage_services",
        "can_manage_appointments",
    },
    "MANAGER": {
        "can_manage_staff",
        "can_manage_clients",
        "can_manage_services",
        "can_manage_appointments",
    },
    "RECEPTIONIST": {
        "can_manage_clients",
        "can_manage_appointments",
    },
    "STAFF": {
        "can_manage_appointments",
    },
    "CLIENT": set(),
}


class IsPlatformAdmin(BasePermission):
    """Permite acesso apenas para administradores da plataforma."""

    message = "Acesso restrito a administradores da plataforma."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return get_principal(request).is_platform_admin


class HasRolePermission(BasePermission):
    """
    Exige a capacidade declarada em `view.required_permission`.
    Views sem o atributo ficam liberadas para qualquer usuário autenticado.
    """

    message = "Seu papel não permite esta operação."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        required = getattr(view, "required_permission", None)
        if not required:
            return True
        return get_principal(request).has_permission(required)
