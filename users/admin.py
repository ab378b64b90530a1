from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Business, CustomUser, Location


class LocationInline(admin.TabularInline):
    model = Location
    extra = 0
    fields = ("name", "address", "city", "is_active")


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """
    Admin para gestão de negócios (salões).
    """

    list_display = ["name", "slug", "timezone", "is_active", "locations_count", "created_at"]
    list_filter = ["is_active", "created_at"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["created_at", "updated_at"]
    inlines = [LocationInline]

    @admin.display(description="Localizações")
    def locations_count(self, obj):
        return obj.locations.count()


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ["username", "email", "role", "business", "is_active"]
    list_filter = ["role", "is_active", "business"]
    fieldsets = UserAdmin.fieldsets + (
        ("Negócio", {"fields": ("business", "role", "phone_number")}),
    )
