import logging
import random

from django.db import transaction

from nepark.exceptions import ConflictError, NotFoundError
from parking_sessions.models import ParkingSession
from parking_slots.models import ParkingSlot
from vehicles.models import VehicleSize, VehicleType

logger = logging.getLogger(__name__)

SEED_LOCATIONS = ['Block A', 'Block B', 'Block C', 'Block D']

SEED_SIZE_BY_TYPE = {
    VehicleType.MOTORCYCLE: VehicleSize.SMALL,
    VehicleType.CAR: VehicleSize.MEDIUM,
    VehicleType.VAN: VehicleSize.MEDIUM,
    VehicleType.TRUCK: VehicleSize.LARGE,
    VehicleType.BUS: VehicleSize.LARGE,
}


def seed_slots(count=100, rng=None):
    """Create ``SLOT-001`` .. ``SLOT-<count>`` on an empty inventory."""
    rng = rng or random.Random()
    with transaction.atomic():
        if ParkingSlot.objects.exists():
            raise ConflictError('Parking slots already exist')

        slots = []
        for i in range(1, count + 1):
            vehicle_type = rng.choice(list(VehicleType))
            slots.append(ParkingSlot(
                slot_number=f"SLOT-{i:03d}",
                location=rng.choice(SEED_LOCATIONS),
                vehicle_type=vehicle_type,
                size=SEED_SIZE_BY_TYPE[vehicle_type],
                status=ParkingSlot.Status.AVAILABLE,
            ))
        ParkingSlot.objects.bulk_create(slots)

    logger.info(f"{len(slots)} parking slots created")
    return slots


def delete_slot(slot_id):
    with transaction.atomic():
        slot = ParkingSlot.objects.select_for_update().filter(id=slot_id).first()
        if slot is None:
            raise NotFoundError('Parking slot not found')
        if ParkingSession.objects.filter(slot=slot, status=ParkingSession.Status.ACTIVE).exists():
            raise ConflictError('Cannot delete slot with active parking sessions')
        slot_number = slot.slot_number
        slot.delete()
    logger.info(f"Parking slot {slot_number} deleted")


def ensure_slot_editable(slot, changes):
    """A slot in use keeps its status, type and size until checkout."""
    if not ParkingSession.objects.filter(slot=slot, status=ParkingSession.Status.ACTIVE).exists():
        return
    frees_slot = 'status' in changes and changes['status'] != ParkingSlot.Status.OCCUPIED
    resizes_slot = any(
        field in changes and changes[field] != getattr(slot, field)
        for field in ('vehicle_type', 'size')
    )
    if frees_slot or resizes_slot:
        raise ConflictError('Cannot change status, type or size of a slot with an active parking session')
