from django.conf import settings
from django.db import models
from django.db.models import Q

from parking_slots.models import ParkingSlot
from vehicles.models import Vehicle


class SlotRequest(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        REJECTED = 'REJECTED', 'Rejected'

    OPEN_STATUSES = (Status.PENDING, Status.APPROVED)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='slot_requests')
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='slot_requests')
    parking_slot = models.ForeignKey(ParkingSlot, on_delete=models.SET_NULL, null=True, blank=True, related_name='slot_requests')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    request_time = models.DateTimeField(auto_now_add=True)
    response_time = models.DateTimeField(null=True, blank=True)
    response_note = models.TextField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-request_time']
        constraints = [
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=Q(status__in=['PENDING', 'APPROVED']),
                name='one_open_request_per_vehicle',
            ),
        ]

    def __str__(self):
        return f"{self.vehicle.plate_number} - {self.status}"
