from rest_framework import serializers
from typing import Any, Dict

from beautyhq_backend.error_handling import BusinessError, ErrorCodes
from beautyhq_backend.validators import (
    sanitize_text_input,
    validate_duration,
    validate_price,
)
from core.models import Appointment, AppointmentService, Client, Service, Staff
from core.recurrence import Frequency, RecurrenceConfigError, RecurrenceRule


class ClientSerializer(serializers.ModelSerializer):
    businessId = serializers.IntegerField(source="business_id", read_only=True)
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    isActive = serializers.BooleanField(source="is_active", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Client
        fields = [
            "id",
            "businessId",
            "firstName",
            "lastName",
            "email",
            "phone",
            "notes",
            "isActive",
            "createdAt",
        ]


class ServiceSerializer(serializers.ModelSerializer):
    businessId = serializers.IntegerField(source="business_id", read_only=True)
    durationMinutes = serializers.IntegerField(source="duration_minutes")
    isActive = serializers.BooleanField(source="is_active", required=False)

    class Meta:
        model = Service
        fields = ["id", "businessId", "name", "durationMinutes", "price", "isActive"]


class StaffSerializer(serializers.ModelSerializer):
    businessId = serializers.IntegerField(source="business_id", read_only=True)
    locationId = serializers.IntegerField(source="location_id", read_only=True)
    userId = serializers.IntegerField(source="user_id", read_only=True)
    displayName = serializers.CharField(source="display_name")
    isActive = serializers.BooleanField(source="is_active", required=False)

    class Meta:
        model = Staff
        fields = [
            "id",
            "businessId",
            "locationId",
            "userId",
            "displayName",
            "bio",
            "isActive",
        ]


class AppointmentServiceSerializer(serializers.ModelSerializer):
    serviceId = serializers.IntegerField(source="service_id", read_only=True)
    name = serializers.CharField(source="service.name", read_only=True)

    class Meta:
        model = AppointmentService
        fields = ["id", "serviceId", "name", "price", "duration"]


class AppointmentSerializer(serializers.ModelSerializer):
    locationId = serializers.IntegerField(source="location_id", read_only=True)
    clientId = serializers.IntegerField(source="client_id", read_only=True)
    staffId = serializers.IntegerField(source="staff_id", read_only=True)
    scheduledStart = serializers.DateTimeField(source="scheduled_start", read_only=True)
    scheduledEnd = serializers.DateTimeField(source="scheduled_end", read_only=True)
    isRecurring = serializers.BooleanField(source="is_recurring", read_only=True)
    recurrenceRule = serializers.SerializerMethodField()
    parentAppointmentId = serializers.IntegerField(
        source="parent_appointment_id", read_only=True
    )
    services = AppointmentServiceSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "locationId",
            "clientId",
            "staffId",
            "scheduledStart",
            "scheduledEnd",
            "status",
            "source",
            "notes",
            "isRecurring",
            "recurrenceRule",
            "parentAppointmentId",
            "services",
            "createdAt",
        ]
        read_only_fields = fields

    def get_recurrenceRule(self, obj) -> Dict[str, Any]:
        return obj.get_recurrence_rule()


class AppointmentOccurrenceSerializer(serializers.ModelSerializer):
    scheduledStart = serializers.DateTimeField(source="scheduled_start", read_only=True)
    scheduledEnd = serializers.DateTimeField(source="scheduled_end", read_only=True)

    class Meta:
        model = Appointment
        fields = ["id", "scheduledStart", "scheduledEnd"]


class RecurrenceRuleSerializer(serializers.Serializer):
    frequency = serializers.ChoiceField(choices=[f.value for f in Frequency])
    interval = serializers.IntegerField(required=False, min_value=1, default=1)
    dayOfMonth = serializers.IntegerField(
        required=False, allow_null=True, min_value=1, max_value=31
    )
    endDate = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    occurrences = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            raise BusinessError(
                "recurrenceRule deve ser um objeto.",
                code=ErrorCodes.VALIDATION_INVALID_RECURRENCE,
            )
        frequency = data.get("frequency")
        if frequency and str(frequency).lower() not in {f.value for f in Frequency}:
            raise BusinessError(
                f"Frequência inválida: {frequency}",
                code=ErrorCodes.VALIDATION_INVALID_RECURRENCE,
                details={"frequency": frequency},
            )
        data = dict(data)
        if frequency:
            data["frequency"] = str(frequency).lower()
        return super().to_internal_value(data)

    def validate(self, attrs):
        try:
            return RecurrenceRule.from_dict(attrs)
        except RecurrenceConfigError as exc:
            raise BusinessError(
                str(exc), code=ErrorCodes.VALIDATION_INVALID_RECURRENCE
            )


class SeriesServiceLineSerializer(serializers.Serializer):
    serviceId = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(
        max_digits=8, decimal_places=2, required=False, allow_null=True
    )
    duration = serializers.IntegerField(required=False, allow_null=True)

    def validate_price(self, value):
        if value is None:
            return value
        return validate_price(value)

    def validate_duration(self, value):
        if value is None:
            return value
        return validate_duration(value)


class RecurringAppointmentCreateSerializer(serializers.Serializer):
    """
    Criação de série recorrente.

    {
        "clientId": 7,
        "staffId": 3,
        "locationId": 2,
        "services": [{"serviceId": 5, "price": "35.00", "duration": 45}],
        "scheduledStart": "2025-03-04T10:00:00",
        "scheduledEnd": "2025-03-04T10:45:00",
        "recurrenceRule": {"frequency": "weekly", "occurrences": 4},
        "notes": "Manutenção de unhas",
        "source": "PHONE"
    }
    """

    clientId = serializers.IntegerField(required=False, allow_null=True)
    staffId = serializers.IntegerField()
    locationId = serializers.IntegerField(required=False, allow_null=True)
    services = SeriesServiceLineSerializer(many=True, required=False)
    scheduledStart = serializers.DateTimeField()
    scheduledEnd = serializers.DateTimeField(required=False, allow_null=True)
    recurrenceRule = RecurrenceRuleSerializer()
    notes = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=2000
    )
    source = serializers.ChoiceField(
        choices=Appointment.Source.choices,
        required=False,
        default=Appointment.Source.PHONE,
    )

    def validate_notes(self, value):
        if value:
            return sanitize_text_input(value, max_length=2000)
        return value

    def validate(self, attrs):
        start = attrs["scheduledStart"]
        end = attrs.get("scheduledEnd")
        if end is not None and end <= start:
            raise serializers.ValidationError(
                {"scheduledEnd": "Deve ser posterior a scheduledStart."}
            )
        service_ids = [line["serviceId"] for line in attrs.get("services") or []]
        if len(set(service_ids)) != len(service_ids):
            raise serializers.ValidationError(
                {"services": "Não é permitido repetir serviços."}
            )
        return attrs


class RecurringSeriesCreateResponseSerializer(serializers.Serializer):
    parentAppointment = AppointmentSerializer()
    childAppointments = AppointmentOccurrenceSerializer(many=True)
    childAppointmentIds = serializers.ListField(child=serializers.IntegerField())
    totalCreated = serializers.IntegerField()


class RecurringSeriesSerializer(serializers.Serializer):
    parentId = serializers.IntegerField()
    recurrenceRule = serializers.DictField(allow_null=True)
    appointments = AppointmentSerializer(many=True)
    count = serializers.IntegerField()


class RecurringSeriesListResponseSerializer(serializers.Serializer):
    series = RecurringSeriesSerializer(many=True)


class SeriesCancelResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    cancelledCount = serializers.IntegerField()
