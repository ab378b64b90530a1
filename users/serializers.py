import logging

from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Business, CustomUser, Location


audit_logger = logging.getLogger("users.audit")


class BusinessSerializer(serializers.ModelSerializer):
    class Meta:
        model = Business
        fields = ["id", "name", "slug", "timezone", "is_active"]
        read_only_fields = fields


class LocationSerializer(serializers.ModelSerializer):
    businessId = serializers.IntegerField(source="business_id", read_only=True)
    isActive = serializers.BooleanField(source="is_active", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Location
        fields = ["id", "businessId", "name", "address", "city", "isActive", "createdAt"]


class PlatformBusinessSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    locationsCount = serializers.IntegerField(source="locations_count", read_only=True)
    usersCount = serializers.IntegerField(source="users_count", read_only=True)
    appointmentsCount = serializers.IntegerField(
        source="appointments_count", read_only=True
    )

    class Meta:
        model = Business
        fields = [
            "id",
            "name",
            "slug",
            "timezone",
            "isActive",
            "createdAt",
            "locationsCount",
            "usersCount",
            "appointmentsCount",
        ]
        read_only_fields = fields


class EmailTokenObtainPairSerializer(serializers.Serializer):
    """Login por email/senha; o token carrega papel e negócio do usuário."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = attrs.get("email")
        password = attrs.get("password")

        try:
            user = CustomUser.objects.select_related("business").get(email=email)
        except (CustomUser.DoesNotExist, CustomUser.MultipleObjectsReturned):
            raise AuthenticationFailed("Credenciais inválidas.")

        if not user.check_password(password):
            raise AuthenticationFailed("Credenciais inválidas.")

        if not user.is_active:
            raise AuthenticationFailed(
                "Conta inativa. Entre em contato com o suporte."
            )

        refresh = RefreshToken.for_user(user)
        claims = {
            "role": user.role,
            "business_id": str(user.business_id) if user.business_id else None,
            "is_platform_admin": user.is_platform_admin,
        }
        for claim, value in claims.items():
            refresh[claim] = value

        access_token = refresh.access_token
        for claim, value in claims.items():
            access_token[claim] = value

        audit_logger.info(
            "User token issued",
            extra={"user_id": user.id, "business_id": user.business_id},
        )

        return {
            "refresh": str(refresh),
            "access": str(access_token),
            "business": BusinessSerializer(user.business).data if user.business else None,
        }
