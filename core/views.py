import dataclasses
import json
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, cast
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db import transaction
from django.db.models import Prefetch, Q
from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status as drf_status
from rest_framework import viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from beautyhq_backend.error_handling import (
    BusinessError,
    ErrorCodes,
    validate_required_fields,
)
from core.mixins import BusinessScopedMixin
from core.models import (
    Appointment,
    AppointmentService,
    Client,
    ClientActivity,
    Service,
    Staff,
)
from core.observability import (
    APPOINTMENT_CANCEL_TOTAL,
    RECURRING_SERIES_CANCELLED_TOTAL,
    RECURRING_SERIES_CREATED_TOTAL,
    RECURRING_SERIES_SIZE_TOTAL,
)
from core.policies import get_location_policy
from core.recurrence import RecurrenceRule, generate_recurring_dates
from core.serializers import (
    AppointmentSerializer,
    ClientSerializer,
    RecurringAppointmentCreateSerializer,
    RecurringSeriesCreateResponseSerializer,
    RecurringSeriesListResponseSerializer,
    SeriesCancelResponseSerializer,
    ServiceSerializer,
    StaffSerializer,
    AppointmentOccurrenceSerializer,
)
from users.models import Location
from users.permissions import HasRolePermission
from users.scoping import (
    BusinessScope,
    ensure_business_access,
    get_location_in_scope,
)
from users.serializers import LocationSerializer

logger = logging.getLogger(__name__)

CANCEL_MODES = ("all", "future")


def _appointments_with_details():
    return Appointment.objects.select_related("location").prefetch_related(
        Prefetch(
            "services",
            queryset=AppointmentService.objects.select_related("service"),
        )
    )


def _get_in_business(model, pk, scope: BusinessScope, label: str):
    """Carrega um registro do negócio; de outro negócio -> 403, inexistente -> 404."""
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        raise NotFound(f"{label} não encontrado.")
    ensure_business_access(scope, obj.business_id)
    return obj


class RecurringAppointmentView(BusinessScopedMixin, APIView):
    """
    Séries de agendamentos recorrentes.

    GET    lista as séries do negócio agrupadas pelo agendamento pai
    POST   cria o agendamento pai e as ocorrências geradas pela regra
    DELETE cancela a série inteira (`type=all`) ou só as futuras (`type=future`)
    """

    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"
    location_field = "location"

    @extend_schema(
        parameters=[
            OpenApiParameter("businessId", OpenApiTypes.INT, required=False),
            OpenApiParameter("locationId", OpenApiTypes.INT, required=False),
            OpenApiParameter("clientId", OpenApiTypes.INT, required=False),
            OpenApiParameter("parentId", OpenApiTypes.INT, required=False),
        ],
        responses={200: RecurringSeriesListResponseSerializer},
    )
    def get(self, request):
        qs = self.scope_queryset(_appointments_with_details()).filter(is_recurring=True)

        params = request.query_params
        client_id = params.get("clientId")
        if client_id:
            qs = qs.filter(client_id=_parse_id("clientId", client_id))
        parent_id = params.get("parentId")
        if parent_id:
            pid = _parse_id("parentId", parent_id)
            qs = qs.filter(Q(id=pid) | Q(parent_appointment_id=pid))

        grouped: Dict[int, List[Appointment]] = {}
        for appointment in qs.order_by("scheduled_start", "id"):
            grouped.setdefault(appointment.series_parent_id, []).append(appointment)

        series = []
        for pid, appointments in grouped.items():
            series.append(
                {
                    "parentId": pid,
                    "recurrenceRule": appointments[0].get_recurrence_rule(),
                    "appointments": AppointmentSerializer(appointments, many=True).data,
                    "count": len(appointments),
                }
            )
        return Response({"series": series})

    @extend_schema(
        request=RecurringAppointmentCreateSerializer,
        responses={201: RecurringSeriesCreateResponseSerializer},
    )
    def post(self, request):
        serializer = RecurringAppointmentCreateSerializer(
            data=request.data, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        data = cast(Dict[str, Any], serializer.validated_data)
        rule = cast(RecurrenceRule, data["recurrenceRule"])

        scope = self.scope
        location_id = data.get("locationId")
        if scope.unscoped and location_id is not None:
            # Admin sem businessId: o negócio é o da localização informada
            location = get_location_in_scope(scope, location_id)
            scope = BusinessScope.for_business(location.business_id)
        location = get_location_policy().resolve(scope, location_id)

        staff = _get_in_business(Staff, data["staffId"], scope, "Profissional")
        client = None
        if data.get("clientId") is not None:
            client = _get_in_business(Client, data["clientId"], scope, "Cliente")

        lines = []
        for line in data.get("services") or []:
            service = _get_in_business(Service, line["serviceId"], scope, "Serviço")
            price = line.get("price")
            duration = line.get("duration")
            lines.append(
                (
                    service,
                    service.price if price is None else price,
                    service.duration_minutes if duration is None else duration,
                )
            )

        # Datas geradas no fuso do negócio (mantém o horário local entre DST)
        tz = ZoneInfo(location.business.timezone)
        start = data["scheduledStart"].astimezone(tz)
        end = data.get("scheduledEnd")
        if end is None:
            end = start + timedelta(minutes=settings.DEFAULT_APPOINTMENT_DURATION_MINUTES)
        duration = end - start

        # `occurrences` conta a série inteira, incluindo o agendamento pai
        if rule.occurrences == 1:
            dates = []
        else:
            child_rule = rule
            if rule.occurrences is not None:
                child_rule = dataclasses.replace(rule, occurrences=rule.occurrences - 1)
            dates = generate_recurring_dates(
                start,
                child_rule,
                max_occurrences=settings.RECURRENCE_DEFAULT_OCCURRENCES,
                hard_limit=settings.RECURRENCE_MAX_OCCURRENCES,
            )

        business_label = str(scope.business_id)
        common = {
            "location": location,
            "client": client,
            "staff": staff,
            "is_recurring": True,
            "recurrence_rule": json.dumps(rule.to_dict()),
            "notes": data.get("notes") or None,
            "source": data.get("source") or Appointment.Source.PHONE,
        }

        try:
            with transaction.atomic():
                parent = Appointment.objects.create(
                    scheduled_start=start, scheduled_end=end, **common
                )
                children = [
                    Appointment.objects.create(
                        scheduled_start=occurrence,
                        scheduled_end=occurrence + duration,
                        parent_appointment=parent,
                        **common,
                    )
                    for occurrence in dates
                ]
                AppointmentService.objects.bulk_create(
                    [
                        AppointmentService(
                            appointment=appointment,
                            service=service,
                            price=price,
                            duration=minutes,
                        )
                        for appointment in [parent, *children]
                        for service, price, minutes in lines
                    ]
                )
                total = len(children) + 1
                if client is not None:
                    ClientActivity.objects.create(
                        client=client,
                        type=ClientActivity.Type.APPOINTMENT_BOOKED,
                        title="Série de agendamentos recorrentes criada",
                        description=f"{total} agendamentos marcados",
                        metadata={
                            "parentAppointmentId": parent.id,
                            "frequency": rule.frequency.value,
                            "totalAppointments": total,
                        },
                    )
        except Exception:
            RECURRING_SERIES_CREATED_TOTAL.labels(
                business_id=business_label,
                frequency=rule.frequency.value,
                status="error",
            ).inc()
            raise

        RECURRING_SERIES_CREATED_TOTAL.labels(
            business_id=business_label,
            frequency=rule.frequency.value,
            status="success",
        ).inc()
        RECURRING_SERIES_SIZE_TOTAL.labels(business_id=business_label).inc(total)
        logger.info(
            "Recurring series created",
            extra={
                "business_id": scope.business_id,
                "user_id": self.principal.user_id,
                "parent_appointment_id": parent.id,
                "location_id": location.id,
                "frequency": rule.frequency.value,
                "total_created": total,
            },
        )

        parent = _appointments_with_details().get(pk=parent.pk)
        return Response(
            {
                "parentAppointment": AppointmentSerializer(parent).data,
                "childAppointments": AppointmentOccurrenceSerializer(
                    children, many=True
                ).data,
                "childAppointmentIds": [child.id for child in children],
                "totalCreated": total,
            },
            status=drf_status.HTTP_201_CREATED,
        )

    @extend_schema(
        parameters=[
            OpenApiParameter("parentId", OpenApiTypes.INT, required=True),
            OpenApiParameter("type", OpenApiTypes.STR, enum=list(CANCEL_MODES)),
            OpenApiParameter("businessId", OpenApiTypes.INT, required=False),
        ],
        responses={200: SeriesCancelResponseSerializer},
    )
    def delete(self, request):
        params = request.query_params
        validate_required_fields(params, ["parentId"])
        parent_id = _parse_id("parentId", params.get("parentId"))
        mode = params.get("type") or "all"
        if mode not in CANCEL_MODES:
            raise ValidationError({"type": "Tipo de cancelamento inválido."})

        scoped = self.scope_queryset(_appointments_with_details())
        parent = scoped.filter(pk=parent_id).first()
        if parent is None:
            raise NotFound("Agendamento não encontrado.")

        qs = scoped.filter(
            Q(id=parent_id) | Q(parent_appointment_id=parent_id)
        ).exclude(status=Appointment.Status.CANCELLED)
        if mode == "future":
            qs = qs.filter(scheduled_start__gte=timezone.now())

        cancelled = Appointment.objects.filter(
            pk__in=list(qs.values_list("pk", flat=True))
        ).update(status=Appointment.Status.CANCELLED, updated_at=timezone.now())

        if cancelled and parent.client_id:
            ClientActivity.objects.create(
                client_id=parent.client_id,
                type=ClientActivity.Type.APPOINTMENT_CANCELLED,
                title="Série de agendamentos recorrentes cancelada",
                description=f"{cancelled} agendamentos cancelados",
                metadata={
                    "parentAppointmentId": parent_id,
                    "mode": mode,
                    "cancelledCount": cancelled,
                },
            )

        business_id = parent.location.business_id
        RECURRING_SERIES_CANCELLED_TOTAL.labels(
            business_id=str(business_id), mode=mode
        ).inc(cancelled)
        logger.info(
            "Recurring series cancelled",
            extra={
                "business_id": business_id,
                "user_id": self.principal.user_id,
                "parent_appointment_id": parent_id,
                "mode": mode,
                "cancelled_count": cancelled,
            },
        )
        return Response({"success": True, "cancelledCount": cancelled})


class AppointmentCancelView(BusinessScopedMixin, APIView):
    """Cancela uma única ocorrência (ou agendamento avulso)."""

    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"

    @extend_schema(request=None, responses={200: AppointmentSerializer})
    def patch(self, request, pk):
        appointment = _appointments_with_details().filter(pk=pk).first()
        if appointment is None:
            raise NotFound("Agendamento não encontrado.")
        business_id = appointment.location.business_id
        ensure_business_access(self.scope, business_id)

        if appointment.status == Appointment.Status.CANCELLED:
            APPOINTMENT_CANCEL_TOTAL.labels(
                business_id=str(business_id), status="already_cancelled"
            ).inc()
            raise BusinessError(
                "Este agendamento já foi cancelado.",
                code=ErrorCodes.VALIDATION_INVALID_VALUE,
                details={"appointment_id": appointment.id},
            )

        appointment.cancel()
        APPOINTMENT_CANCEL_TOTAL.labels(
            business_id=str(business_id), status="success"
        ).inc()
        logger.info(
            "Appointment cancelled",
            extra={
                "business_id": business_id,
                "user_id": self.principal.user_id,
                "appointment_id": appointment.id,
                "parent_appointment_id": appointment.parent_appointment_id,
            },
        )
        return Response(AppointmentSerializer(appointment).data)


def _parse_id(name: str, raw) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: "Identificador inválido."})
    if value < 1:
        raise ValidationError({name: "Identificador inválido."})
    return value


class ClientViewSet(BusinessScopedMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_clients"

    def get_queryset(self):
        qs = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(phone__icontains=search)
            )
        return qs


class ServiceViewSet(BusinessScopedMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Service.objects.all()
    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"


class StaffViewSet(BusinessScopedMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Staff.objects.select_related("location")
    serializer_class = StaffSerializer
    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"


class LocationViewSet(BusinessScopedMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Location.objects.all()
    serializer_class = LocationSerializer
    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"


class AppointmentViewSet(BusinessScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    Agendamentos do negócio. Filtros: businessId (admin), locationId,
    status, date (YYYY-MM-DD, no fuso do servidor).
    """

    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated, HasRolePermission]
    required_permission = "can_manage_appointments"
    location_field = "location"

    def get_queryset(self):
        qs = self.scope_queryset(_appointments_with_details())

        params = self.request.query_params
        status_value: Optional[str] = params.get("status")
        if status_value:
            status_value = status_value.upper()
            if status_value not in Appointment.Status.values:
                raise ValidationError({"status": "Status inválido."})
            qs = qs.filter(status=status_value)

        date_raw = params.get("date")
        if date_raw:
            day = parse_date(date_raw)
            if day is None:
                raise ValidationError({"date": "Formato inválido. Use YYYY-MM-DD."})
            qs = qs.filter(scheduled_start__date=day)

        return qs.order_by("scheduled_start", "id")
