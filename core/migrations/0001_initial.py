import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=120)),
                ("last_name", models.CharField(blank=True, max_length=120)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, max_length=32, null=True)),
                ("notes", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="clients", to="users.business")),
            ],
            options={
                "ordering": ("first_name", "last_name", "id"),
                "indexes": [
                    models.Index(fields=["business"], name="core_client_business_idx"),
                    models.Index(fields=["business", "last_name"], name="core_client_name_idx"),
                    models.Index(fields=["business", "phone"], name="core_client_phone_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("duration_minutes", models.PositiveIntegerField(default=60, help_text="Duração do serviço em minutos")),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("is_active", models.BooleanField(default=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="services", to="users.business")),
            ],
            options={
                "ordering": ("name", "id"),
                "indexes": [
                    models.Index(fields=["business"], name="core_service_business_idx"),
                    models.Index(fields=["business", "is_active"], name="core_service_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Staff",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("display_name", models.CharField(max_length=120)),
                ("bio", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="staff", to="users.business")),
                ("location", models.ForeignKey(blank=True, help_text="Localização principal do profissional", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="staff", to="users.location")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="staff_profiles", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("display_name", "id"),
                "indexes": [
                    models.Index(fields=["business"], name="core_staff_business_idx"),
                    models.Index(fields=["business", "is_active"], name="core_staff_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Appointment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scheduled_start", models.DateTimeField()),
                ("scheduled_end", models.DateTimeField()),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("BOOKED", "Booked"), ("CONFIRMED", "Confirmed"), ("CHECKED_IN", "Checked in"), ("IN_PROGRESS", "In progress"), ("COMPLETED", "Completed"), ("NO_SHOW", "No show"), ("CANCELLED", "Cancelled")], default="BOOKED", max_length=20)),
                ("source", models.CharField(choices=[("PHONE", "Phone"), ("WALK_IN", "Walk-in"), ("ONLINE", "Online"), ("MARKETPLACE", "Marketplace"), ("VOICE", "Voice")], default="PHONE", max_length=20)),
                ("notes", models.TextField(blank=True, null=True)),
                ("is_recurring", models.BooleanField(default=False)),
                ("recurrence_rule", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="appointments", to="core.client")),
                ("location", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="appointments", to="users.location")),
                ("parent_appointment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="children", to="core.appointment")),
                ("staff", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="appointments", to="core.staff")),
            ],
            options={
                "ordering": ("scheduled_start", "id"),
                "indexes": [
                    models.Index(fields=["location", "scheduled_start"], name="core_appt_loc_start_idx"),
                    models.Index(fields=["parent_appointment"], name="core_appt_parent_idx"),
                    models.Index(fields=["status"], name="core_appt_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AppointmentService",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("price", models.DecimalField(decimal_places=2, max_digits=8)),
                ("duration", models.PositiveIntegerField(help_text="Duração em minutos")),
                ("appointment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="services", to="core.appointment")),
                ("service", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="appointment_lines", to="core.service")),
            ],
            options={
                "ordering": ("id",),
            },
        ),
        migrations.CreateModel(
            name="ClientActivity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("APPOINTMENT_BOOKED", "Appointment booked"), ("APPOINTMENT_CANCELLED", "Appointment cancelled")], max_length=40)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="activities", to="core.client")),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
    ]
