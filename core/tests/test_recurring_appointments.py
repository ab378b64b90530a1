from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.models import Appointment, AppointmentService, ClientActivity, Staff
from users.models import CustomUser, Location

URL = "/api/appointments/recurring/"


def _payload(staff, location=None, client=None, services=(), **overrides):
    start = timezone.now().replace(microsecond=0) + timedelta(days=7)
    data = {
        "staffId": staff.id,
        "scheduledStart": start.isoformat(),
        "scheduledEnd": (start + timedelta(minutes=45)).isoformat(),
        "recurrenceRule": {"frequency": "weekly", "occurrences": 4},
        "services": [{"serviceId": s.id} for s in services],
        "notes": "Manutenção",
    }
    if location is not None:
        data["locationId"] = location.id
    if client is not None:
        data["clientId"] = client.id
    data.update(overrides)
    return data


@pytest.mark.django_db
def test_weekly_series_of_four_then_cancel_all(
    owner_client, location, staff_member, salon_client, service
):
    response = owner_client.post(
        URL,
        _payload(staff_member, location, salon_client, [service]),
        format="json",
    )

    assert response.status_code == 201
    data = response.json()
    assert data["totalCreated"] == 4
    assert len(data["childAppointments"]) == 3
    assert len(data["childAppointmentIds"]) == 3

    parent_id = data["parentAppointment"]["id"]
    parent = Appointment.objects.get(pk=parent_id)
    children = list(Appointment.objects.filter(parent_appointment_id=parent_id))
    assert len(children) == 3
    assert all(a.is_recurring for a in [parent, *children])
    assert data["parentAppointment"]["recurrenceRule"]["frequency"] == "weekly"

    lisbon = ZoneInfo("Europe/Lisbon")
    parent_local = parent.scheduled_start.astimezone(lisbon).replace(tzinfo=None)
    starts = [
        parse_datetime(c["scheduledStart"]).astimezone(lisbon).replace(tzinfo=None)
        for c in data["childAppointments"]
    ]
    assert starts[0] - parent_local == timedelta(days=7)
    assert starts[2] - parent_local == timedelta(days=21)
    for child in data["childAppointments"]:
        length = parse_datetime(child["scheduledEnd"]) - parse_datetime(
            child["scheduledStart"]
        )
        assert length == timedelta(minutes=45)

    response = owner_client.delete(f"{URL}?parentId={parent_id}&type=all")

    assert response.status_code == 200
    assert response.json() == {"success": True, "cancelledCount": 4}
    statuses = set(
        Appointment.objects.filter(
            pk__in=[parent_id, *data["childAppointmentIds"]]
        ).values_list("status", flat=True)
    )
    assert statuses == {Appointment.Status.CANCELLED}
    # Linhas nunca são apagadas
    assert Appointment.objects.count() == 4

    response = owner_client.delete(f"{URL}?parentId={parent_id}")
    assert response.json()["cancelledCount"] == 0


@pytest.mark.django_db
def test_cancel_future_keeps_past_occurrences(owner_client, location, staff_member):
    start = timezone.now().replace(microsecond=0) - timedelta(days=10)
    response = owner_client.post(
        URL,
        _payload(
            staff_member,
            location,
            scheduledStart=start.isoformat(),
            scheduledEnd=(start + timedelta(hours=1)).isoformat(),
        ),
        format="json",
    )
    assert response.status_code == 201
    parent_id = response.json()["parentAppointment"]["id"]

    response = owner_client.delete(f"{URL}?parentId={parent_id}&type=future")

    assert response.status_code == 200
    assert response.json()["cancelledCount"] == 2
    now = timezone.now()
    series = Appointment.objects.filter(pk=parent_id) | Appointment.objects.filter(
        parent_appointment_id=parent_id
    )
    for appointment in series:
        if appointment.scheduled_start < now:
            assert appointment.status == Appointment.Status.BOOKED
        else:
            assert appointment.status == Appointment.Status.CANCELLED


@pytest.mark.django_db
def test_series_copies_service_lines_and_records_activity(
    owner_client, location, staff_member, salon_client, service
):
    payload = _payload(staff_member, location, salon_client)
    payload["services"] = [{"serviceId": service.id, "price": "30.00"}]
    payload["recurrenceRule"] = {"frequency": "daily", "occurrences": 3}

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 201
    lines = AppointmentService.objects.all()
    assert lines.count() == 3
    assert {line.price for line in lines} == {Decimal("30.00")}
    assert {line.duration for line in lines} == {45}

    activity = ClientActivity.objects.get(client=salon_client)
    assert activity.type == ClientActivity.Type.APPOINTMENT_BOOKED
    assert activity.metadata["totalAppointments"] == 3
    assert activity.metadata["frequency"] == "daily"


@pytest.mark.django_db
def test_single_occurrence_series_has_no_children(owner_client, location, staff_member):
    payload = _payload(
        staff_member, location, recurrenceRule={"frequency": "weekly", "occurrences": 1}
    )

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 201
    assert response.json()["totalCreated"] == 1
    assert response.json()["childAppointmentIds"] == []


@pytest.mark.django_db
def test_default_cap_bounds_open_series(owner_client, location, staff_member):
    payload = _payload(staff_member, location, recurrenceRule={"frequency": "weekly"})

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 201
    assert response.json()["totalCreated"] == 13


@pytest.mark.django_db
def test_missing_end_uses_default_duration(owner_client, location, staff_member):
    payload = _payload(staff_member, location)
    payload.pop("scheduledEnd")

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 201
    parent = Appointment.objects.get(pk=response.json()["parentAppointment"]["id"])
    assert parent.scheduled_end - parent.scheduled_start == timedelta(minutes=60)


@pytest.mark.django_db
def test_invalid_frequency_returns_400(owner_client, location, staff_member):
    payload = _payload(staff_member, location, recurrenceRule={"frequency": "yearly"})

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "E105"
    assert Appointment.objects.count() == 0


@pytest.mark.django_db
def test_end_before_start_returns_400(owner_client, location, staff_member):
    payload = _payload(staff_member, location)
    payload["scheduledEnd"] = payload["scheduledStart"]

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 400
    assert "scheduledEnd" in response.json()["error"]["details"]


@pytest.mark.django_db
def test_foreign_staff_is_forbidden(owner_client, location, other_business):
    foreign_staff = Staff.objects.create(business=other_business, display_name="Rui")

    response = owner_client.post(URL, _payload(foreign_staff, location), format="json")

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "E207"
    assert Appointment.objects.count() == 0


@pytest.mark.django_db
def test_foreign_location_is_forbidden(owner_client, staff_member, other_location):
    response = owner_client.post(
        URL, _payload(staff_member, other_location), format="json"
    )

    assert response.status_code == 403
    assert Appointment.objects.count() == 0


@pytest.mark.django_db
def test_unknown_staff_returns_404(owner_client, location, staff_member):
    payload = _payload(staff_member, location)
    payload["staffId"] = 999999

    response = owner_client.post(URL, payload, format="json")

    assert response.status_code == 404


@pytest.mark.django_db
def test_failure_mid_series_rolls_back_everything(
    owner_client, location, staff_member, salon_client
):
    with patch.object(
        ClientActivity.objects, "create", side_effect=RuntimeError("db down")
    ):
        response = owner_client.post(
            URL, _payload(staff_member, location, salon_client), format="json"
        )

    assert response.status_code == 500
    body = response.json()["error"]
    assert body["code"] == "E300"
    assert "db down" not in body["message"]
    assert Appointment.objects.count() == 0


@pytest.mark.django_db
def test_business_user_without_business_fails_fast(api_client, orphan_user):
    api_client.force_authenticate(user=orphan_user)

    response = api_client.get(URL)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "E206"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "path",
    ["/api/clients/", "/api/appointments/", "/api/services/", "/api/staff/", "/api/locations/"],
)
def test_client_role_cannot_read_business_lists(api_client, business, salon_client, path):
    user = CustomUser.objects.create_user(
        username="cliente",
        password="testpass123",
        business=business,
        role=CustomUser.Roles.CLIENT,
    )
    api_client.force_authenticate(user=user)

    response = api_client.get(path)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "E004"


@pytest.mark.django_db
def test_staff_role_reads_appointments_but_not_clients(api_client, business, salon_client):
    user = CustomUser.objects.create_user(
        username="ana",
        password="testpass123",
        business=business,
        role=CustomUser.Roles.STAFF,
    )
    api_client.force_authenticate(user=user)

    assert api_client.get("/api/appointments/").status_code == 200
    assert api_client.get("/api/clients/").status_code == 403


@pytest.mark.django_db
def test_client_role_cannot_manage_series(api_client, business):
    user = CustomUser.objects.create_user(
        username="cliente",
        password="testpass123",
        business=business,
        role=CustomUser.Roles.CLIENT,
    )
    api_client.force_authenticate(user=user)

    response = api_client.get(URL)

    assert response.status_code == 403


@pytest.mark.django_db
def test_platform_admin_creates_series_in_location_business(
    admin_client, location, staff_member
):
    response = admin_client.post(URL, _payload(staff_member, location), format="json")

    assert response.status_code == 201
    assert Appointment.objects.filter(location=location).count() == 4


@pytest.mark.django_db
def test_get_groups_series_by_parent_and_hides_other_business(
    owner_client, location, staff_member, other_owner, other_location, other_business
):
    owner_client.post(URL, _payload(staff_member, location), format="json")
    owner_client.post(
        URL,
        _payload(
            staff_member, location, recurrenceRule={"frequency": "daily", "occurrences": 2}
        ),
        format="json",
    )
    foreign_staff = Staff.objects.create(business=other_business, display_name="Rui")
    other = Appointment.objects.create(
        location=other_location,
        staff=foreign_staff,
        scheduled_start=timezone.now(),
        scheduled_end=timezone.now() + timedelta(hours=1),
        is_recurring=True,
    )

    response = owner_client.get(URL)

    assert response.status_code == 200
    series = response.json()["series"]
    assert sorted(s["count"] for s in series) == [2, 4]
    ids = {a["id"] for s in series for a in s["appointments"]}
    assert other.id not in ids
    for group in series:
        assert group["appointments"][0]["id"] == group["parentId"]


@pytest.mark.django_db
def test_get_filters_by_parent(owner_client, location, staff_member):
    first = owner_client.post(URL, _payload(staff_member, location), format="json")
    owner_client.post(URL, _payload(staff_member, location), format="json")
    parent_id = first.json()["parentAppointment"]["id"]

    response = owner_client.get(f"{URL}?parentId={parent_id}")

    series = response.json()["series"]
    assert len(series) == 1
    assert series[0]["parentId"] == parent_id
    assert series[0]["recurrenceRule"] == {
        "frequency": "weekly",
        "interval": 1,
        "occurrences": 4,
    }


@pytest.mark.django_db
def test_delete_requires_parent_id(owner_client):
    response = owner_client.delete(URL)

    assert response.status_code == 400
    assert "parentId" in response.json()["error"]["details"]


@pytest.mark.django_db
def test_delete_rejects_unknown_cancel_type(owner_client, location, staff_member):
    created = owner_client.post(URL, _payload(staff_member, location), format="json")
    parent_id = created.json()["parentAppointment"]["id"]

    response = owner_client.delete(f"{URL}?parentId={parent_id}&type=single")

    assert response.status_code == 400
    assert Appointment.objects.filter(status=Appointment.Status.CANCELLED).count() == 0


@pytest.mark.django_db
def test_delete_foreign_series_returns_404(
    api_client, other_owner, owner_client, location, staff_member
):
    created = owner_client.post(URL, _payload(staff_member, location), format="json")
    parent_id = created.json()["parentAppointment"]["id"]

    api_client.force_authenticate(user=other_owner)
    response = api_client.delete(f"{URL}?parentId={parent_id}&type=all")

    assert response.status_code == 404
    assert Appointment.objects.filter(status=Appointment.Status.CANCELLED).count() == 0


@pytest.mark.django_db
def test_delete_series_records_cancellation_activity(
    owner_client, location, staff_member, salon_client
):
    created = owner_client.post(
        URL, _payload(staff_member, location, salon_client), format="json"
    )
    parent_id = created.json()["parentAppointment"]["id"]

    owner_client.delete(f"{URL}?parentId={parent_id}&type=all")

    activity = ClientActivity.objects.get(type=ClientActivity.Type.APPOINTMENT_CANCELLED)
    assert activity.metadata["cancelledCount"] == 4


@pytest.mark.django_db
def test_location_created_after_cache_is_visible(owner_client, business, staff_member):
    # Aquece o cache de localizações do negócio
    owner_client.get("/api/appointments/")
    new_location = Location.objects.create(business=business, name="Glow Norte")

    response = owner_client.post(
        URL, _payload(staff_member, new_location), format="json"
    )

    assert response.status_code == 201
    listing = owner_client.get("/api/appointments/")
    assert len(listing.json()["results"]) == 4


@pytest.mark.django_db
def test_explicit_location_policy_rejects_missing_location(
    settings, owner_client, location, staff_member
):
    settings.DEFAULT_LOCATION_POLICY = "core.policies.RequireExplicitLocation"

    response = owner_client.post(URL, _payload(staff_member), format="json")

    assert response.status_code == 400
    assert "locationId" in response.json()["error"]["details"]


@pytest.mark.django_db
def test_first_location_policy_without_locations_returns_404(api_client, other_owner):
    api_client.force_authenticate(user=other_owner)
    staff = Staff.objects.create(business=other_owner.business, display_name="Rui")

    response = api_client.post(URL, _payload(staff), format="json")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "E208"
    assert "Crie uma localização primeiro" in response.json()["error"]["message"]


@pytest.mark.django_db
def test_first_location_policy_uses_oldest_location(
    owner_client, business, location, staff_member
):
    Location.objects.create(business=business, name="Glow Norte")

    response = owner_client.post(URL, _payload(staff_member), format="json")

    assert response.status_code == 201
    assert response.json()["parentAppointment"]["locationId"] == location.id
