import logging

from django.db.models import Count
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from .identity import get_principal
from .models import Business
from .observability import USERS_AUTH_EVENTS_TOTAL
from .permissions import IsPlatformAdmin
from .scoping import resolve_business_scope
from .serializers import EmailTokenObtainPairSerializer, PlatformBusinessSerializer

logger = logging.getLogger(__name__)


class EmailTokenObtainPairView(TokenObtainPairView):
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        try:
            resp = super().post(request, *args, **kwargs)
        except Exception:
            USERS_AUTH_EVENTS_TOTAL.labels(event="login", result="failure").inc()
            raise
        USERS_AUTH_EVENTS_TOTAL.labels(event="login", result="success").inc()
        return resp


class MeView(APIView):
    """
    GET /api/auth/me/

    Identidade resolvida do chamador e o escopo de negócio efetivo
    (considerando `businessId` quando o chamador é admin da plataforma).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[OpenApiParameter("businessId", OpenApiTypes.INT, required=False)],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        principal = get_principal(request)
        scope = resolve_business_scope(
            principal, request.query_params.get("businessId")
        )
        return Response({"principal": principal.as_dict(), "scope": scope.as_dict()})


class PlatformBusinessPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class PlatformBusinessViewSet(
    mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet
):
    """Visão de plataforma: todos os negócios, com contagens agregadas."""

    serializer_class = PlatformBusinessSerializer
    pagination_class = PlatformBusinessPagination
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def get_queryset(self):
        # Leitura irrestrita explícita: passa pelo mesmo resolvedor auditado
        resolve_business_scope(get_principal(self.request))
        queryset = Business.objects.annotate(
            locations_count=Count("locations", distinct=True),
            users_count=Count("users", distinct=True),
            appointments_count=Count("locations__appointments", distinct=True),
        ).order_by("name", "id")

        is_active = self.request.query_params.get("is_active")
        if is_active is not None:
            queryset = queryset.filter(
                is_active=str(is_active).lower() in {"1", "true", "yes"}
            )
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        logger.info(
            "Platform businesses listed",
            extra={"user_id": request.user.id, "status_code": status.HTTP_200_OK},
        )
        return response
