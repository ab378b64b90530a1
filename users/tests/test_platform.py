from datetime import timedelta

import pytest
from django.utils import timezone

from core.models import Appointment
from users.models import Location


@pytest.mark.django_db
def test_platform_businesses_lists_all_with_counts(
    admin_client, business, other_business, location, staff_member, owner
):
    Location.objects.create(business=business, name="Glow Norte")
    start = timezone.now()
    for _ in range(2):
        Appointment.objects.create(
            location=location,
            staff=staff_member,
            scheduled_start=start,
            scheduled_end=start + timedelta(hours=1),
        )

    response = admin_client.get("/api/platform/businesses/")

    assert response.status_code == 200
    rows = {row["slug"]: row for row in response.json()["results"]}
    assert set(rows) == {"glow-studio", "hair-lab"}
    assert rows["glow-studio"]["locationsCount"] == 2
    assert rows["glow-studio"]["appointmentsCount"] == 2
    assert rows["glow-studio"]["usersCount"] == 1
    assert rows["hair-lab"]["appointmentsCount"] == 0


@pytest.mark.django_db
def test_platform_businesses_search(admin_client, business, other_business):
    response = admin_client.get("/api/platform/businesses/?search=hair")

    assert [row["slug"] for row in response.json()["results"]] == ["hair-lab"]


@pytest.mark.django_db
def test_platform_businesses_forbidden_for_business_users(owner_client):
    response = owner_client.get("/api/platform/businesses/")

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "E004"
