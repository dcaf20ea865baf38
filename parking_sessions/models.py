import math
from decimal import Decimal

from django.db import models
from django.db.models import Q

from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from vehicles.models import Vehicle


def calculate_fee(entry_time, exit_time, hourly_rate):
    """Bill every started hour; a stay is never cheaper than one hour."""
    duration_hours = (exit_time - entry_time).total_seconds() / 3600
    hourly_rate = Decimal(hourly_rate)
    return max(hourly_rate, math.ceil(duration_hours) * hourly_rate)


class ParkingSession(models.Model):
    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        PENDING_PAYMENT = 'PENDING_PAYMENT', 'Pending payment'
        COMPLETED = 'COMPLETED', 'Completed'

    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='parking_sessions')
    slot = models.ForeignKey(ParkingSlot, on_delete=models.SET_NULL, null=True, related_name='parking_sessions')
    slot_request = models.ForeignKey(SlotRequest, on_delete=models.SET_NULL, null=True, blank=True, related_name='parking_sessions')
    entry_time = models.DateTimeField()
    exit_time = models.DateTimeField(null=True, blank=True)
    fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-entry_time']
        constraints = [
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=Q(status='ACTIVE'),
                name='one_active_session_per_vehicle',
            ),
        ]

    def __str__(self):
        return f"{self.vehicle.plate_number} - {self.status}"

    @property
    def duration(self):
        if self.exit_time is None:
            return None
        return self.exit_time - self.entry_time
