import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from nepark.exceptions import ConflictError, NotFoundError
from nepark.policy import authorize, is_admin
from notifications.services import create_notification, notify_admins
from parking_sessions.models import ParkingSession, calculate_fee
from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from vehicles.models import Vehicle

logger = logging.getLogger(__name__)


def visible_sessions(actor, vehicle_id=None, status=None):
    sessions = ParkingSession.objects.select_related('vehicle', 'vehicle__owner', 'slot')
    if not is_admin(actor):
        sessions = sessions.filter(vehicle__owner=actor)
    if vehicle_id:
        sessions = sessions.filter(vehicle_id=vehicle_id)
    if status:
        sessions = sessions.filter(status=status)
    return sessions.order_by('-entry_time', '-id')


class ParkingSessionLifecycle:
    """ACTIVE -> PENDING_PAYMENT -> COMPLETED, or ACTIVE -> COMPLETED on a
    direct admin checkout."""

    def __init__(self, clock=timezone.now, hourly_rate=None):
        self.clock = clock
        self.hourly_rate = hourly_rate if hourly_rate is not None else settings.PARKING_HOURLY_RATE

    def get(self, session_id, actor):
        session = ParkingSession.objects.select_related('vehicle', 'slot').filter(id=session_id).first()
        if session is None:
            raise NotFoundError('Parking session not found')
        authorize(actor, 'session.view', session, 'You can only view your own parking sessions')
        return session

    def _locked_session(self, session_id):
        session = ParkingSession.objects.select_for_update(of=('self',)).select_related('vehicle', 'vehicle__owner', 'slot').filter(id=session_id).first()
        if session is None:
            raise NotFoundError('Parking session not found')
        return session

    def check_in(self, vehicle_id, actor):
        now = self.clock()
        with transaction.atomic():
            vehicle = Vehicle.objects.select_for_update().select_related('owner').filter(id=vehicle_id).first()
            if vehicle is None:
                raise NotFoundError('Vehicle not found')
            authorize(actor, 'session.check_in', vehicle, 'You can only check in your own vehicles')

            if ParkingSession.objects.filter(vehicle=vehicle, status=ParkingSession.Status.ACTIVE).exists():
                raise ConflictError('Vehicle already has an active parking session')

            slot_request = (
                SlotRequest.objects.select_related('parking_slot')
                .filter(vehicle=vehicle, status=SlotRequest.Status.APPROVED)
                .first()
            )
            if slot_request is None or slot_request.parking_slot is None:
                raise ConflictError('Vehicle has no approved parking slot')

            slot = slot_request.parking_slot
            claimed = ParkingSlot.objects.filter(
                id=slot.id, status=ParkingSlot.Status.AVAILABLE
            ).update(status=ParkingSlot.Status.OCCUPIED, updated_at=now)
            if not claimed:
                raise ConflictError('Parking slot is not available')
            slot.status = ParkingSlot.Status.OCCUPIED

            try:
                with transaction.atomic():
                    session = ParkingSession.objects.create(
                        vehicle=vehicle,
                        slot=slot,
                        slot_request=slot_request,
                        entry_time=now,
                        status=ParkingSession.Status.ACTIVE,
                    )
            except IntegrityError:
                raise ConflictError('Vehicle already has an active parking session')

            create_notification(
                vehicle.owner,
                f"Vehicle {vehicle.plate_number} checked in at slot {slot.slot_number}",
            )

        logger.info(f"Vehicle {vehicle.plate_number} checked in at {slot.slot_number}")
        return session

    def request_checkout(self, session_id, actor):
        with transaction.atomic():
            session = self._locked_session(session_id)
            authorize(actor, 'session.request_checkout', session, 'You can only check out your own vehicles')
            if session.status != ParkingSession.Status.ACTIVE:
                raise ConflictError('Only active sessions can request checkout')

            session.status = ParkingSession.Status.PENDING_PAYMENT
            session.save(update_fields=['status', 'updated_at'])
            notify_admins(f"Checkout requested for vehicle {session.vehicle.plate_number}")

        logger.info(f"Checkout requested for session {session.id}")
        return session

    def check_out(self, session_id, admin):
        authorize(admin, 'session.check_out', message='Only administrators can check out vehicles')
        now = self.clock()
        with transaction.atomic():
            session = self._locked_session(session_id)
            if session.status not in (ParkingSession.Status.ACTIVE, ParkingSession.Status.PENDING_PAYMENT):
                raise ConflictError('Parking session is already completed')

            session.exit_time = now
            session.fee = calculate_fee(session.entry_time, now, self.hourly_rate)
            session.status = ParkingSession.Status.COMPLETED
            session.save(update_fields=['exit_time', 'fee', 'status', 'updated_at'])

            if session.slot_id is not None:
                ParkingSlot.objects.filter(
                    id=session.slot_id, status=ParkingSlot.Status.OCCUPIED
                ).update(status=ParkingSlot.Status.AVAILABLE, updated_at=now)

            create_notification(
                session.vehicle.owner,
                f"Vehicle {session.vehicle.plate_number} checked out. Fee: {session.fee} {settings.PARKING_CURRENCY}",
            )

        logger.info(f"Session {session.id} completed, fee {session.fee}")
        return session
