from django.urls import path, include

from rest_framework.routers import DefaultRouter

from core.views import (
    AppointmentCancelView,
    AppointmentViewSet,
    ClientViewSet,
    LocationViewSet,
    RecurringAppointmentView,
    ServiceViewSet,
    StaffViewSet,
)

router = DefaultRouter()
router.register("clients", ClientViewSet, basename="client")
router.register("services", ServiceViewSet, basename="service")
router.register("staff", StaffViewSet, basename="staff")
router.register("locations", LocationViewSet, basename="location")
router.register("appointments", AppointmentViewSet, basename="appointment")

urlpatterns = [
    path(
        "appointments/recurring/",
        RecurringAppointmentView.as_view(),
        name="appointment-recurring",
    ),
    path(
        "appointments/<int:pk>/cancel/",
        AppointmentCancelView.as_view(),
        name="appointment-cancel",
    ),
    path("", include(router.urls)),
]
