from django.contrib import admin

from core.models import (
    Appointment,
    AppointmentService,
    Client,
    ClientActivity,
    Service,
    Staff,
)


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "business", "phone", "is_active")
    list_filter = ("business", "is_active")
    search_fields = ("first_name", "last_name", "email", "phone")


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Admin para serviços com filtro por negócio."""

    list_display = ("name", "business", "price", "duration_minutes", "is_active")
    list_filter = ("business", "is_active")
    search_fields = ("name", "business__name")

    fieldsets = (
        ("Informações Básicas", {"fields": ("business", "name", "is_active")}),
        ("Preços e Duração", {"fields": ("price", "duration_minutes")}),
    )


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("display_name", "business", "location", "is_active")
    list_filter = ("business", "is_active")
    search_fields = ("display_name", "user__username")


class AppointmentServiceInline(admin.TabularInline):
    model = AppointmentService
    extra = 0


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    """Agendamentos; séries recorrentes exibem o agendamento pai."""

    list_display = (
        "id",
        "scheduled_start",
        "location",
        "staff",
        "client",
        "status",
        "is_recurring",
        "parent_appointment",
    )
    list_filter = ("status", "source", "is_recurring", "location__business")
    search_fields = ("client__first_name", "client__last_name", "staff__display_name")
    date_hierarchy = "scheduled_start"
    raw_id_fields = ("parent_appointment", "client", "staff")
    inlines = [AppointmentServiceInline]
    actions = ["cancel_appointments"]

    @admin.action(description="Cancelar agendamentos selecionados")
    def cancel_appointments(self, request, queryset):
        updated = queryset.exclude(status=Appointment.Status.CANCELLED).update(
            status=Appointment.Status.CANCELLED
        )
        self.message_user(request, f"{updated} agendamento(s) cancelado(s).")


@admin.register(ClientActivity)
class ClientActivityAdmin(admin.ModelAdmin):
    list_display = ("client", "type", "title", "created_at")
    list_filter = ("type",)
    readonly_fields = ("metadata", "created_at")
