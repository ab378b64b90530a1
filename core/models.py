import json
from typing import Any, cast

from django.conf import settings
from django.db import models

from users.models import Business, Location


class Client(models.Model):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="clients",
    )
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120, blank=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, null=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=cast(Any, True))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["business"], name="core_client_business_idx"),
            models.Index(fields=["business", "last_name"], name="core_client_name_idx"),
            models.Index(fields=["business", "phone"], name="core_client_phone_idx"),
        ]
        ordering = ("first_name", "last_name", "id")

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()


class Service(models.Model):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="services",
    )
    name = models.CharField(max_length=100)
    duration_minutes = models.PositiveIntegerField(
        default=60, help_text="Duração do serviço em minutos"
    )
    price = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    is_active = models.BooleanField(default=cast(Any, True))

    class Meta:
        indexes = [
            models.Index(fields=["business"], name="core_service_business_idx"),
            models.Index(fields=["business", "is_active"], name="core_service_active_idx"),
        ]
        ordering = ("name", "id")

    def __str__(self):
        return f"{self.name} ({self.price}€)"


class Staff(models.Model):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="staff",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff_profiles",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
        help_text="Localização principal do profissional",
    )
    display_name = models.CharField(max_length=120)
    bio = models.TextField(blank=True)
    is_active = models.BooleanField(default=cast(Any, True))

    class Meta:
        indexes = [
            models.Index(fields=["business"], name="core_staff_business_idx"),
            models.Index(fields=["business", "is_active"], name="core_staff_active_idx"),
        ]
        ordering = ("display_name", "id")

    def __str__(self):
        return self.display_name


class Appointment(models.Model):
    """
    Agendamento. Pertence ao negócio indiretamente, via localização.

    Séries recorrentes: o primeiro agendamento é o "pai"; as ocorrências
    seguintes apontam para ele em `parent_appointment`.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        BOOKED = "BOOKED", "Booked"
        CONFIRMED = "CONFIRMED", "Confirmed"
        CHECKED_IN = "CHECKED_IN", "Checked in"
        IN_PROGRESS = "IN_PROGRESS", "In progress"
        COMPLETED = "COMPLETED", "Completed"
        NO_SHOW = "NO_SHOW", "No show"
        CANCELLED = "CANCELLED", "Cancelled"

    class Source(models.TextChoices):
        PHONE = "PHONE", "Phone"
        WALK_IN = "WALK_IN", "Walk-in"
        ONLINE = "ONLINE", "Online"
        MARKETPLACE = "MARKETPLACE", "Marketplace"
        VOICE = "VOICE", "Voice"

    location = models.ForeignKey(
        Location, on_delete=models.CASCADE, related_name="appointments"
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="appointments",
    )
    staff = models.ForeignKey(
        Staff, on_delete=models.CASCADE, related_name="appointments"
    )
    scheduled_start = models.DateTimeField()
    scheduled_end = models.DateTimeField()
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.BOOKED
    )
    source = models.CharField(
        max_length=20, choices=Source.choices, default=Source.PHONE
    )
    notes = models.TextField(blank=True, null=True)
    is_recurring = models.BooleanField(default=cast(Any, False))
    # Regra serializada em JSON (mesmo formato da API)
    recurrence_rule = models.TextField(blank=True, null=True)
    parent_appointment = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["location", "scheduled_start"], name="core_appt_loc_start_idx"),
            models.Index(fields=["parent_appointment"], name="core_appt_parent_idx"),
            models.Index(fields=["status"], name="core_appt_status_idx"),
        ]
        ordering = ("scheduled_start", "id")

    def __str__(self):
        return f"Appointment<{self.id}> {self.scheduled_start:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def business_id(self):
        return self.location.business_id

    @property
    def series_parent_id(self):
        return self.parent_appointment_id or self.id

    def get_recurrence_rule(self):
        if not self.recurrence_rule:
            return None
        try:
            return json.loads(self.recurrence_rule)
        except ValueError:
            return None

    def cancel(self):
        self.status = self.Status.CANCELLED
        self.save(update_fields=["status", "updated_at"])


class AppointmentService(models.Model):
    appointment = models.ForeignKey(
        Appointment, on_delete=models.CASCADE, related_name="services"
    )
    service = models.ForeignKey(
        Service, on_delete=models.PROTECT, related_name="appointment_lines"
    )
    price = models.DecimalField(max_digits=8, decimal_places=2)
    duration = models.PositiveIntegerField(help_text="Duração em minutos")

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return f"{self.service.name} x Appointment<{self.appointment_id}>"


class ClientActivity(models.Model):
    """Linha do tempo do cliente (ex.: série de agendamentos criada)."""

    class Type(models.TextChoices):
        APPOINTMENT_BOOKED = "APPOINTMENT_BOOKED", "Appointment booked"
        APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED", "Appointment cancelled"

    client = models.ForeignKey(
        Client, on_delete=models.CASCADE, related_name="activities"
    )
    type = models.CharField(max_length=40, choices=Type.choices)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"{self.type} - {self.client}"
