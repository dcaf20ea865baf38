"""Tests for the access policy and slot size rules."""

import pytest

from nepark.exceptions import ForbiddenError
from nepark.policy import authorize, can
from parking_slots.models import ParkingSlot, size_fits
from vehicles.models import Vehicle

pytestmark = pytest.mark.django_db


class TestSizeCompatibility:
    """Test slot/vehicle size matching."""

    @pytest.mark.parametrize('slot_size, vehicle_size, fits', [
        ('SMALL', 'SMALL', True),
        ('SMALL', 'MEDIUM', False),
        ('SMALL', 'LARGE', False),
        ('MEDIUM', 'SMALL', True),
        ('MEDIUM', 'MEDIUM', True),
        ('MEDIUM', 'LARGE', False),
        ('LARGE', 'SMALL', True),
        ('LARGE', 'MEDIUM', True),
        ('LARGE', 'LARGE', True),
    ])
    def test_size_matrix(self, slot_size, vehicle_size, fits):
        assert size_fits(slot_size, vehicle_size) is fits

    def test_type_must_match_exactly(self, vehicle):
        van_slot = ParkingSlot(slot_number='SLOT-009', location='Block A', vehicle_type='VAN', size='LARGE')
        car_slot = ParkingSlot(slot_number='SLOT-010', location='Block A', vehicle_type='CAR', size='LARGE')

        assert not van_slot.accommodates(vehicle)
        assert car_slot.accommodates(vehicle)


class TestPolicy:
    """Test ownership and role checks."""

    def test_owner_or_admin(self, user, other_user, admin_user, vehicle):
        assert can(user, 'vehicle.view', vehicle)
        assert can(admin_user, 'vehicle.view', vehicle)
        assert not can(other_user, 'vehicle.view', vehicle)

    def test_admin_only(self, user, admin_user):
        assert can(admin_user, 'slot.manage')
        assert not can(user, 'slot.manage')

    def test_owner_only_excludes_admin(self, admin_user, vehicle):
        assert not can(admin_user, 'slot_request.create', vehicle)

    def test_authorize_raises(self, other_user, vehicle):
        with pytest.raises(ForbiddenError) as excinfo:
            authorize(other_user, 'vehicle.delete', vehicle, 'Not your vehicle')
        assert str(excinfo.value.detail) == 'Not your vehicle'

    def test_plate_normalisation(self):
        assert Vehicle.normalize_plate(' rab 123a ') == 'RAB123A'
