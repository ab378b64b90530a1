from django.urls import path
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import (
    TokenRefreshView,
)
from .views import (
    EmailTokenObtainPairView,
    MeView,
    PlatformBusinessViewSet,
)

router = SimpleRouter()
router.register(
    "platform/businesses", PlatformBusinessViewSet, basename="platform-businesses"
)

urlpatterns = [
    path("auth/token/", EmailTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("auth/me/", MeView.as_view(), name="auth_me"),
]

urlpatterns += router.urls
