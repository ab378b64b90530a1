from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from beautyhq_backend.error_handling import (
    BusinessNotFound,
    LocationNotFound,
    NoBusinessAssociated,
    TenantAccessDenied,
)
from core.models import Appointment, Client, Staff
from users.identity import TenantPrincipal
from users.models import Location
from users.scoping import (
    BusinessScope,
    ensure_business_access,
    location_ids_for_business,
    location_ids_for_scope,
    resolve_business_scope,
    scope_by_location,
)


def _principal(business_id=None, role="OWNER", admin=False, user_id=1):
    return TenantPrincipal(
        user_id=user_id, role=role, business_id=business_id, is_platform_admin=admin
    )


@pytest.mark.django_db
def test_regular_user_always_scoped_to_own_business(business, other_business):
    scope = resolve_business_scope(_principal(business.id), other_business.id)

    assert scope == BusinessScope.for_business(business.id)
    assert not scope.unscoped


@pytest.mark.django_db
def test_foreign_business_request_is_logged(business, other_business):
    with patch("users.scoping.logger") as logger:
        resolve_business_scope(_principal(business.id), str(other_business.id))

    assert logger.warning.call_args[0][0] == "Ignoring foreign businessId requested by tenant user"


@pytest.mark.django_db
def test_regular_user_without_business_fails_before_any_query(django_assert_num_queries):
    with django_assert_num_queries(0):
        with pytest.raises(NoBusinessAssociated) as exc:
            resolve_business_scope(_principal(None, role="MANAGER"), "5")

    assert exc.value.status_code == 403


def test_admin_without_request_gets_unscoped_sentinel():
    with patch("users.scoping.logger") as logger:
        scope = resolve_business_scope(_principal(admin=True, role="PLATFORM_ADMIN"))

    assert scope == BusinessScope.unscoped_platform_read()
    assert scope.unscoped
    assert scope.business_id is None
    logger.info.assert_called_once()
    assert logger.info.call_args[0][0] == "Unscoped platform read"


@pytest.mark.django_db
def test_admin_with_request_is_scoped(business):
    scope = resolve_business_scope(
        _principal(admin=True, role="PLATFORM_ADMIN"), str(business.id)
    )

    assert scope == BusinessScope.for_business(business.id)


@pytest.mark.django_db
@pytest.mark.parametrize("requested", ["999999", "abc"])
def test_admin_with_unknown_business_is_not_found(requested):
    with pytest.raises(BusinessNotFound):
        resolve_business_scope(_principal(admin=True, role="PLATFORM_ADMIN"), requested)


def test_restricted_scope_requires_business_id():
    with pytest.raises(ValueError):
        BusinessScope(business_id=None)


@pytest.mark.django_db
def test_scope_filter_applies_business_predicate(business, other_business):
    Client.objects.create(business=business, first_name="Maria")
    Client.objects.create(business=other_business, first_name="Joana")

    scoped = BusinessScope.for_business(business.id).filter(Client.objects.all())
    unscoped = BusinessScope.unscoped_platform_read().filter(Client.objects.all())

    assert [c.first_name for c in scoped] == ["Maria"]
    assert unscoped.count() == 2


def test_ensure_business_access():
    scope = BusinessScope.for_business(1)

    ensure_business_access(scope, 1)
    ensure_business_access(BusinessScope.unscoped_platform_read(), 2)
    with pytest.raises(TenantAccessDenied):
        ensure_business_access(scope, 2)


@pytest.mark.django_db
def test_location_ids_are_derived_and_cached(business, location, django_assert_num_queries):
    second = Location.objects.create(business=business, name="Glow Norte")

    assert location_ids_for_business(business.id) == [location.id, second.id]
    with django_assert_num_queries(0):
        assert location_ids_for_business(business.id) == [location.id, second.id]


@pytest.mark.django_db
def test_location_cache_invalidated_on_change(business, location):
    assert location_ids_for_business(business.id) == [location.id]

    new_location = Location.objects.create(business=business, name="Glow Norte")
    assert new_location.id in location_ids_for_business(business.id)

    new_location.delete()
    assert location_ids_for_business(business.id) == [location.id]


def test_unscoped_has_no_location_restriction():
    assert location_ids_for_scope(BusinessScope.unscoped_platform_read()) is None


@pytest.mark.django_db
def test_scope_by_location_filters_and_rejects(
    business, location, other_location, staff_member
):
    now = timezone.now()
    own = Appointment.objects.create(
        location=location, staff=staff_member, scheduled_start=now, scheduled_end=now + timedelta(hours=1)
    )
    foreign_staff = Staff.objects.create(business=other_location.business, display_name="Rui")
    Appointment.objects.create(
        location=other_location, staff=foreign_staff, scheduled_start=now, scheduled_end=now + timedelta(hours=1)
    )
    scope = BusinessScope.for_business(business.id)

    assert list(scope_by_location(Appointment.objects.all(), scope)) == [own]
    assert list(scope_by_location(Appointment.objects.all(), scope, location.id)) == [own]
    with pytest.raises(TenantAccessDenied):
        scope_by_location(Appointment.objects.all(), scope, other_location.id)
    with pytest.raises(LocationNotFound):
        scope_by_location(Appointment.objects.all(), scope, 999999)
