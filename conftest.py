"""
Configurações globais de testes: negócios, localizações e usuários por papel.
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.models import Client, Service, Staff
from users.models import Business, CustomUser, Location


@pytest.fixture(autouse=True)
def clear_cache():
    # Conjuntos de localizações ficam em cache; ids são reaproveitados entre testes
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def business(db):
    return Business.objects.create(name="Glow Studio", slug="glow-studio")


@pytest.fixture
def other_business(db):
    return Business.objects.create(name="Hair Lab", slug="hair-lab")


@pytest.fixture
def location(business):
    return Location.objects.create(business=business, name="Glow Centro", city="Lisboa")


@pytest.fixture
def other_location(other_business):
    return Location.objects.create(business=other_business, name="Hair Lab Porto", city="Porto")


@pytest.fixture
def owner(business):
    return CustomUser.objects.create_user(
        username="owner",
        email="owner@glow.test",
        password="testpass123",
        business=business,
        role=CustomUser.Roles.OWNER,
    )


@pytest.fixture
def other_owner(other_business):
    return CustomUser.objects.create_user(
        username="other_owner",
        email="owner@hairlab.test",
        password="testpass123",
        business=other_business,
        role=CustomUser.Roles.OWNER,
    )


@pytest.fixture
def platform_admin(db):
    return CustomUser.objects.create_user(
        username="admin",
        email="admin@beautyhq.test",
        password="testpass123",
        role=CustomUser.Roles.PLATFORM_ADMIN,
    )


@pytest.fixture
def orphan_user(db):
    """Usuário de negócio sem negócio associado (conta mal provisionada)."""
    return CustomUser.objects.create_user(
        username="orphan",
        email="orphan@beautyhq.test",
        password="testpass123",
        role=CustomUser.Roles.MANAGER,
    )


@pytest.fixture
def staff_member(business, location):
    return Staff.objects.create(business=business, location=location, display_name="Ana")


@pytest.fixture
def salon_client(business):
    return Client.objects.create(business=business, first_name="Maria", last_name="Silva")


@pytest.fixture
def service(business):
    return Service.objects.create(
        business=business, name="Manicure", duration_minutes=45, price="25.00"
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner_client(api_client, owner):
    api_client.force_authenticate(user=owner)
    return api_client


@pytest.fixture
def admin_client(api_client, platform_admin):
    api_client.force_authenticate(user=platform_admin)
    return api_client
