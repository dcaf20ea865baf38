from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from notifications.models import Notification
from parking_sessions.models import ParkingSession
from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from users.models import User
from vehicles.models import Vehicle


class Command(BaseCommand):
    help = 'Wipe parking data and load a small demo dataset'

    @transaction.atomic
    def handle(self, *args, **options):
        Notification.objects.all().delete()
        ParkingSession.objects.all().delete()
        SlotRequest.objects.all().delete()
        ParkingSlot.objects.all().delete()
        Vehicle.objects.all().delete()
        User.objects.all().delete()

        User.objects.create_user(
            email='admin@example.com',
            name='Admin User',
            phone_number='1234567890',
            password='Admin@123',
            role=User.Role.ADMIN,
            is_verified=True,
        )
        user = User.objects.create_user(
            email='user1@example.com',
            name='John Doe',
            phone_number='0987654321',
            password='User@123',
            is_verified=True,
        )

        car = Vehicle.objects.create(owner=user, plate_number='ABC123', vehicle_type='CAR', size='MEDIUM', color='Red')
        Vehicle.objects.create(owner=user, plate_number='XYZ789', vehicle_type='MOTORCYCLE', size='SMALL', color='Black')

        # SLOT-001 is taken by the seeded session below
        slot = ParkingSlot.objects.create(
            slot_number='SLOT-001', location='Lot A', size='MEDIUM', vehicle_type='CAR',
            status=ParkingSlot.Status.OCCUPIED,
        )
        ParkingSlot.objects.create(slot_number='SLOT-002', location='Lot B', size='SMALL', vehicle_type='MOTORCYCLE')

        now = timezone.now()
        slot_request = SlotRequest.objects.create(
            user=user,
            vehicle=car,
            parking_slot=slot,
            status=SlotRequest.Status.APPROVED,
            response_time=now,
            response_note='Approved for parking',
        )
        ParkingSession.objects.create(vehicle=car, slot=slot, slot_request=slot_request, entry_time=now)
        Notification.objects.create(user=user, message='Your parking request has been approved.')

        self.stdout.write(self.style.SUCCESS('Database seeded successfully.'))
