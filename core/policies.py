"""
Políticas de resolução da localização de um agendamento.

A política padrão é configurável em `DEFAULT_LOCATION_POLICY` e sempre
opera dentro do escopo do negócio do chamador.
"""

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from beautyhq_backend.error_handling import ErrorCodes, LocationNotFound
from rest_framework.exceptions import ValidationError
from users.models import Location
from users.scoping import BusinessScope, get_location_in_scope

logger = logging.getLogger(__name__)


class LocationPolicy:
    def resolve(self, scope: BusinessScope, location_id=None) -> Location:
        if location_id not in (None, ""):
            return get_location_in_scope(scope, location_id)
        return self.default_location(scope)

    def default_location(self, scope: BusinessScope) -> Location:
        raise NotImplementedError


class RequireExplicitLocation(LocationPolicy):
    """Sem localização informada, a requisição é rejeitada."""

    def default_location(self, scope):
        raise ValidationError(
            {"locationId": "Este campo é obrigatório."},
            code=ErrorCodes.VALIDATION_REQUIRED_FIELD,
        )


class FirstLocationOfBusiness(LocationPolicy):
    """Usa a localização mais antiga do negócio do chamador."""

    def default_location(self, scope):
        if scope.unscoped:
            # Sem negócio definido não há "primeira localização" segura
            raise ValidationError(
                {"locationId": "Informe a localização ou o businessId."}
            )
        location = (
            Location.objects.filter(business_id=scope.business_id)
            .order_by("created_at", "id")
            .first()
        )
        if location is None:
            raise LocationNotFound()
        logger.info(
            "Default location resolved",
            extra={"business_id": scope.business_id, "location_id": location.id},
        )
        return location


def get_location_policy(path=None) -> LocationPolicy:
    policy_path = path or getattr(
        settings, "DEFAULT_LOCATION_POLICY", "core.policies.FirstLocationOfBusiness"
    )
    return import_string(policy_path)()
