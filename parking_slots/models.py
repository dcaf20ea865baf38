from django.db import models

from vehicles.models import VehicleSize, VehicleType

# A larger slot hosts a smaller vehicle, never the reverse.
SIZE_RANK = {
    VehicleSize.SMALL.value: 1,
    VehicleSize.MEDIUM.value: 2,
    VehicleSize.LARGE.value: 3,
}


def size_fits(slot_size, vehicle_size):
    if slot_size not in SIZE_RANK or vehicle_size not in SIZE_RANK:
        return False
    return SIZE_RANK[vehicle_size] <= SIZE_RANK[slot_size]


class ParkingSlot(models.Model):
    class Status(models.TextChoices):
        AVAILABLE = 'AVAILABLE', 'Available'
        OCCUPIED = 'OCCUPIED', 'Occupied'
        MAINTENANCE = 'MAINTENANCE', 'Maintenance'

    slot_number = models.CharField(max_length=20, unique=True)
    location = models.CharField(max_length=100)
    size = models.CharField(max_length=10, choices=VehicleSize.choices)
    vehicle_type = models.CharField(max_length=20, choices=VehicleType.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['slot_number']

    def __str__(self):
        return f"{self.slot_number} - {self.location}"

    def accommodates(self, vehicle):
        return self.vehicle_type == vehicle.vehicle_type and size_fits(self.size, vehicle.size)
