from users.identity import get_principal
from users.scoping import resolve_business_scope, scope_by_location


class BusinessScopedMixin:
    """
    Resolve o principal e o escopo de negócio antes do handler e filtra o
    queryset por ele.

    - `business_field`: FK direta para o negócio (clientes, serviços, ...).
    - `location_field`: para entidades ligadas via localização (agendamentos);
      quando definido, o filtro é feito em dois passos e `locationId` é aceito.
    """

    business_field = "business"
    location_field = None

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.principal = get_principal(request)
        self.scope = resolve_business_scope(
            self.principal, request.query_params.get("businessId")
        )

    def scope_queryset(self, queryset):
        if self.location_field:
            return scope_by_location(
                queryset,
                self.scope,
                self.request.query_params.get("locationId"),
                field=self.location_field,
            )
        return self.scope.filter(queryset, field=self.business_field)

    def get_queryset(self):
        return self.scope_queryset(super().get_queryset())
