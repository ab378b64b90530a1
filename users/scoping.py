"""
Filtro de escopo por negócio (tenant).

Calcula o predicado de negócio aplicado a toda query sobre dados de um
negócio. Entidades ligadas indiretamente (agendamentos) são filtradas em dois
passos: primeiro o conjunto de localizações do negócio, depois
`location_id IN (...)`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.core.cache import cache

from beautyhq_backend.error_handling import (
    BusinessNotFound,
    LocationNotFound,
    NoBusinessAssociated,
    TenantAccessDenied,
)
from users.identity import TenantPrincipal
from users.models import Business, Location
from users.observability import BUSINESS_SCOPE_RESOLVED_TOTAL

logger = logging.getLogger(__name__)

LOCATION_IDS_CACHE_PREFIX = "scope:locations:"


@dataclass(frozen=True)
class BusinessScope:
    """
    Escopo efetivo de uma operação.

    `business_id` é sempre preenchido, exceto no escopo de leitura irrestrita
    da plataforma, que só existe via `unscoped_platform_read()`.
    """

    business_id: Optional[int]
    unscoped: bool = False

    @classmethod
    def for_business(cls, business_id: int) -> "BusinessScope":
        return cls(business_id=business_id, unscoped=False)

    @classmethod
    def unscoped_platform_read(cls) -> "BusinessScope":
        return cls(business_id=None, unscoped=True)

    def __post_init__(self):
        if not self.unscoped and self.business_id is None:
            raise ValueError("Escopo restrito exige business_id.")

    def allows(self, business_id) -> bool:
        if self.unscoped:
            return True
        return business_id is not None and int(business_id) == int(self.business_id)

    def filter(self, queryset, field: str = "business"):
        """Aplica `field = business_id` ao queryset (sem efeito no escopo irrestrito)."""
        if self.unscoped:
            return queryset
        return queryset.filter(**{f"{field}_id": self.business_id})

    def as_dict(self) -> dict:
        return {"businessId": self.business_id, "unscoped": self.unscoped}


def _parse_business_id(raw) -> Optional[int]:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BusinessNotFound(raw)


def resolve_business_scope(
    principal: TenantPrincipal, requested_business_id=None
) -> BusinessScope:
    """
    - Admin da plataforma: escopo do negócio pedido, ou leitura irrestrita.
    - Usuário de negócio: sempre o próprio negócio; o pedido é ignorado.
    - Usuário de negócio sem negócio: NoBusinessAssociated, antes de qualquer query.
    """
    if principal.is_platform_admin:
        business_id = _parse_business_id(requested_business_id)
        if business_id is None:
            BUSINESS_SCOPE_RESOLVED_TOTAL.labels(kind="unscoped").inc()
            logger.info(
                "Unscoped platform read",
                extra={"user_id": principal.user_id, "role": principal.role},
            )
            return BusinessScope.unscoped_platform_read()
        if not Business.objects.filter(pk=business_id).exists():
            raise BusinessNotFound(business_id)
        BUSINESS_SCOPE_RESOLVED_TOTAL.labels(kind="admin_override").inc()
        return BusinessScope.for_business(business_id)

    if principal.business_id is None:
        BUSINESS_SCOPE_RESOLVED_TOTAL.labels(kind="no_business").inc()
        logger.warning(
            "Business scope rejected: user has no business",
            extra={"user_id": principal.user_id, "role": principal.role},
        )
        raise NoBusinessAssociated(principal.user_id)

    if requested_business_id not in (None, "") and str(requested_business_id) != str(
        principal.business_id
    ):
        logger.warning(
            "Ignoring foreign businessId requested by tenant user",
            extra={
                "user_id": principal.user_id,
                "business_id": principal.business_id,
                "requested_business_id": str(requested_business_id),
            },
        )
    BUSINESS_SCOPE_RESOLVED_TOTAL.labels(kind="tenant").inc()
    return BusinessScope.for_business(principal.business_id)


def ensure_business_access(scope: BusinessScope, business_id) -> None:
    """Bloqueia escrita/leitura em negócio fora do escopo (erro de autorização)."""
    if not scope.allows(business_id):
        raise TenantAccessDenied()


def location_ids_for_business(business_id: int) -> List[int]:
    """Ids das localizações do negócio, com cache curto (tolerância a staleness)."""
    key = f"{LOCATION_IDS_CACHE_PREFIX}{business_id}"
    cached = cache.get(key)
    if cached is not None:
        return cached
    ids = list(
        Location.objects.filter(business_id=business_id)
        .order_by("id")
        .values_list("id", flat=True)
    )
    cache.set(key, ids, settings.LOCATION_SCOPE_CACHE_TTL)
    return ids


def invalidate_location_ids(business_id: int) -> None:
    cache.delete(f"{LOCATION_IDS_CACHE_PREFIX}{business_id}")


def location_ids_for_scope(scope: BusinessScope) -> Optional[List[int]]:
    """None significa "sem restrição" (somente no escopo irrestrito)."""
    if scope.unscoped:
        return None
    return location_ids_for_business(scope.business_id)


def get_location_in_scope(scope: BusinessScope, location_id) -> Location:
    """
    Carrega a localização e confirma que pertence ao escopo.
    Desconhecida -> LocationNotFound; de outro negócio -> TenantAccessDenied.
    """
    try:
        location = Location.objects.select_related("business").get(pk=int(location_id))
    except (TypeError, ValueError, Location.DoesNotExist):
        raise LocationNotFound("Localização não encontrada.", location_id=location_id)
    ensure_business_access(scope, location.business_id)
    return location


def scope_by_location(queryset, scope: BusinessScope, location_id=None, field="location"):
    """
    Restringe entidades ligadas ao negócio via localização.

    Com `location_id` explícito, valida que a localização pertence ao escopo
    e filtra só por ela; caso contrário usa o conjunto de localizações do negócio.
    """
    if location_id not in (None, ""):
        location = get_location_in_scope(scope, location_id)
        return queryset.filter(**{f"{field}_id": location.id})

    ids = location_ids_for_scope(scope)
    if ids is None:
        return queryset
    return queryset.filter(**{f"{field}_id__in": ids})
