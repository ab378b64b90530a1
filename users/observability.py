from prometheus_client import Counter, REGISTRY


def _get_or_create_counter(name: str, documentation: str, labelnames: tuple[str, ...]) -> Counter:
    existing = REGISTRY._names_to_collectors.get(name)  # type: ignore[attr-defined]
    if existing is not None:
        return existing  # type: ignore[return-value]
    return Counter(name, documentation, labelnames)


BUSINESS_SCOPE_RESOLVED_TOTAL = _get_or_create_counter(
    "business_scope_resolved_total",
    "Total de escopos de negócio resolvidos por tipo (tenant, admin_override, unscoped, no_business)",
    ("kind",),
)

USERS_AUTH_EVENTS_TOTAL = _get_or_create_counter(
    "users_auth_events_total",
    "Total de eventos de autenticação (login por email)",
    ("event", "result"),
)
