from __future__ import annotations

from typing import Any, cast

from django.contrib.auth.models import AbstractUser
from django.db import models

from .managers import CustomUserManager


class Business(models.Model):
    """
    Modelo para multi-tenancy. Cada negócio representa um salão/organização
    e é a unidade de isolamento de dados.
    """

    name = models.CharField(max_length=255, help_text="Nome do salão/organização")
    slug = models.SlugField(unique=True, help_text="Identificador único (URL-friendly)")
    timezone = models.CharField(
        max_length=50, default="Europe/Lisbon", help_text="Timezone do negócio"
    )
    is_active = models.BooleanField(default=cast(Any, True))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["slug"], name="users_biz_slug_idx"),
            models.Index(fields=["is_active"], name="users_biz_active_idx"),
        ]

    def __str__(self):
        return self.name


class Location(models.Model):
    """Unidade física de um negócio. Agendamentos pertencem ao negócio via localização."""

    business = models.ForeignKey(
        Business, on_delete=models.CASCADE, related_name="locations"
    )
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=120, blank=True)
    is_active = models.BooleanField(default=cast(Any, True))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["business"], name="users_loc_business_idx"),
            models.Index(fields=["business", "created_at"], name="users_loc_biz_created_idx"),
        ]
        ordering = ("created_at", "id")

    def __str__(self):
        return f"{self.name} ({self.business.name})"


class CustomUser(AbstractUser):
    class Roles(models.TextChoices):
        PLATFORM_ADMIN = "PLATFORM_ADMIN", "Platform Admin"
        OWNER = "OWNER", "Owner"
        MANAGER = "MANAGER", "Manager"
        RECEPTIONIST = "RECEPTIONIST", "Receptionist"
        STAFF = "STAFF", "Staff"
        CLIENT = "CLIENT", "Client"

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="users",
        null=True,
        blank=True,
        help_text="Negócio ao qual o usuário pertence (nulo apenas para admins da plataforma)",
    )
    role = models.CharField(
        max_length=20, choices=Roles.choices, default=Roles.OWNER
    )
    phone_number = models.CharField(max_length=20, blank=True, null=True)
    objects: Any = CustomUserManager()

    class Meta:
        indexes = [
            models.Index(fields=["business", "username"], name="users_user_biz_uname_idx"),
            models.Index(fields=["business", "email"], name="users_user_biz_email_idx"),
            models.Index(fields=["role"], name="users_user_role_idx"),
        ]

    def __str__(self):
        if self.business:
            return f"{self.username} ({self.business.name})"
        return self.username

    @property
    def is_platform_admin(self) -> bool:
        return self.is_superuser or self.role == self.Roles.PLATFORM_ADMIN
