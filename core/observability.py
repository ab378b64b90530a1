from prometheus_client import Counter, REGISTRY


def _get_or_create_counter(name: str, documentation: str, labelnames: tuple[str, ...]) -> Counter:
    existing = REGISTRY._names_to_collectors.get(name)  # type: ignore[attr-defined]
    if existing is not None:
        return existing  # type: ignore[return-value]
    return Counter(name, documentation, labelnames)


RECURRING_SERIES_CREATED_TOTAL = _get_or_create_counter(
    "recurring_series_created_total",
    "Total de séries recorrentes criadas",
    ("business_id", "frequency", "status"),
)

RECURRING_SERIES_SIZE_TOTAL = _get_or_create_counter(
    "recurring_series_size_total",
    "Total de agendamentos criados em séries recorrentes (pai + filhos)",
    ("business_id",),
)

RECURRING_SERIES_CANCELLED_TOTAL = _get_or_create_counter(
    "recurring_series_cancelled_total",
    "Total de agendamentos cancelados via série, por modo (all, future)",
    ("business_id", "mode"),
)

APPOINTMENT_CANCEL_TOTAL = _get_or_create_counter(
    "appointment_cancel_total",
    "Total de cancelamentos de agendamento avulso",
    ("business_id", "status"),
)
