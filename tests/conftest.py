"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from parking_slots.models import ParkingSlot
from tests.fakes import RecordingEmailSender
from users.models import User
from vehicles.models import Vehicle


@pytest.fixture(autouse=True)
def email_outbox(settings):
    """Route every email to the in-memory outbox."""
    settings.EMAIL_SENDER_CLASS = 'tests.fakes.RecordingEmailSender'
    RecordingEmailSender.reset()
    yield RecordingEmailSender
    RecordingEmailSender.reset()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        name='Admin User',
        password='Admin@1234',
        role=User.Role.ADMIN,
        is_verified=True,
    )


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='john@example.com',
        name='John Doe',
        password='User@1234',
        is_verified=True,
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='jane@example.com',
        name='Jane Roe',
        password='User@1234',
        is_verified=True,
    )


@pytest.fixture
def vehicle(user):
    return Vehicle.objects.create(owner=user, plate_number='RAB123A', vehicle_type='CAR', size='MEDIUM', color='Red')


@pytest.fixture
def slot(db):
    return ParkingSlot.objects.create(slot_number='SLOT-001', location='Block A', vehicle_type='CAR', size='MEDIUM')


@pytest.fixture
def user_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client
