import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from nepark.exceptions import ConflictError, NotFoundError, ValidationError
from nepark.policy import authorize, is_admin
from notifications.services import create_notification, notify_admins
from parking_sessions.models import ParkingSession
from parking_slots.models import ParkingSlot, size_fits
from slot_requests.models import SlotRequest
from vehicles.models import Vehicle

logger = logging.getLogger(__name__)


def visible_requests(actor, status=None, search=None, user_id=None):
    """Requests the actor may list: admins see everything, users their own."""
    requests = SlotRequest.objects.select_related('user', 'vehicle', 'parking_slot')
    if not is_admin(actor):
        requests = requests.filter(user=actor)
    elif user_id:
        requests = requests.filter(user_id=user_id)
    if status:
        requests = requests.filter(status=status)
    if search:
        requests = requests.filter(
            Q(vehicle__plate_number__icontains=search) | Q(user__name__icontains=search)
        )
    return requests.order_by('-request_time', '-id')


class SlotRequestWorkflow:
    """PENDING -> APPROVED | REJECTED. Both outcomes are terminal.

    Approval allocates the slot and opens the parking session in one
    transaction. Approval/rejection emails are best effort: a delivery
    failure is logged and never undoes the decision.
    """

    def __init__(self, email_sender, clock=timezone.now):
        self.email_sender = email_sender
        self.clock = clock

    def get(self, request_id, actor):
        slot_request = SlotRequest.objects.select_related('user', 'vehicle', 'parking_slot').filter(id=request_id).first()
        if slot_request is None:
            raise NotFoundError('Slot request not found')
        authorize(actor, 'slot_request.view', slot_request)
        return slot_request

    def _locked_request(self, request_id):
        slot_request = SlotRequest.objects.select_for_update().select_related('user', 'vehicle').filter(id=request_id).first()
        if slot_request is None:
            raise NotFoundError('Slot request not found')
        return slot_request

    def _owned_vehicle(self, vehicle_id, user, message):
        vehicle = Vehicle.objects.select_for_update().filter(id=vehicle_id).first()
        if vehicle is None:
            raise NotFoundError('Vehicle not found')
        authorize(user, 'slot_request.create', vehicle, message)
        return vehicle

    def _ensure_vehicle_free(self, vehicle, exclude_request_id=None):
        open_requests = SlotRequest.objects.filter(vehicle=vehicle, status__in=SlotRequest.OPEN_STATUSES)
        if exclude_request_id is not None:
            open_requests = open_requests.exclude(id=exclude_request_id)
        existing = open_requests.first()
        if existing is not None:
            if existing.status == SlotRequest.Status.PENDING:
                raise ConflictError('A pending request already exists for this vehicle')
            raise ConflictError('This vehicle already has an approved parking slot')

        if ParkingSession.objects.filter(vehicle=vehicle, status=ParkingSession.Status.ACTIVE).exists():
            raise ConflictError('Vehicle already has an active parking session')

    def create(self, vehicle_id, user):
        with transaction.atomic():
            vehicle = self._owned_vehicle(vehicle_id, user, 'You can only request slots for your own vehicles')
            self._ensure_vehicle_free(vehicle)
            try:
                with transaction.atomic():
                    slot_request = SlotRequest.objects.create(user=user, vehicle=vehicle)
            except IntegrityError:
                raise ConflictError('A pending request already exists for this vehicle')

            notify_admins(f"New parking slot request from {user.name} for vehicle {vehicle.plate_number}")

        logger.info(f"Slot request {slot_request.id} created by {user.email} for {vehicle.plate_number}")
        return slot_request

    def update(self, request_id, vehicle_id, user):
        with transaction.atomic():
            slot_request = self._locked_request(request_id)
            authorize(user, 'slot_request.update', slot_request)
            if slot_request.status != SlotRequest.Status.PENDING:
                raise ConflictError('Only pending requests can be updated')

            if vehicle_id is not None and vehicle_id != slot_request.vehicle_id:
                vehicle = self._owned_vehicle(vehicle_id, user, 'You can only use your own vehicles')
                self._ensure_vehicle_free(vehicle, exclude_request_id=slot_request.id)
                slot_request.vehicle = vehicle
                try:
                    with transaction.atomic():
                        slot_request.save(update_fields=['vehicle', 'updated_at'])
                except IntegrityError:
                    raise ConflictError('A pending request already exists for this vehicle')

            notify_admins(f"Parking slot request {slot_request.id} updated by {user.name}")

        logger.info(f"Slot request {slot_request.id} updated by {user.email}")
        return slot_request

    def delete(self, request_id, actor):
        with transaction.atomic():
            slot_request = self._locked_request(request_id)
            authorize(actor, 'slot_request.delete', slot_request)
            if slot_request.status != SlotRequest.Status.PENDING:
                raise ConflictError('Only pending requests can be deleted')
            slot_request.delete()
        logger.info(f"Slot request {request_id} deleted by {actor.email}")

    def approve(self, request_id, slot_id, admin):
        authorize(admin, 'slot_request.decide', message='Only administrators can approve requests')
        now = self.clock()

        with transaction.atomic():
            slot_request = self._locked_request(request_id)
            if slot_request.status != SlotRequest.Status.PENDING:
                raise ConflictError(f"Request is already {slot_request.status.lower()}")

            slot = ParkingSlot.objects.select_for_update().filter(id=slot_id).first()
            if slot is None:
                raise NotFoundError('Parking slot not found')
            if slot.status != ParkingSlot.Status.AVAILABLE:
                raise ConflictError('Parking slot is not available')
            if ParkingSession.objects.filter(slot=slot, status=ParkingSession.Status.ACTIVE).exists():
                raise ConflictError('Parking slot is not available')

            vehicle = slot_request.vehicle
            if slot.vehicle_type != vehicle.vehicle_type:
                raise ValidationError(f"Slot is for {slot.vehicle_type} vehicles, but vehicle is {vehicle.vehicle_type}")
            if not size_fits(slot.size, vehicle.size):
                raise ValidationError(f"Slot size {slot.size} is not compatible with vehicle size {vehicle.size}")

            # Conditional update: only one approval can take an AVAILABLE slot
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

            slot_request.status = SlotRequest.Status.APPROVED
            slot_request.response_time = now
            slot_request.parking_slot = slot
            slot_request.save(update_fields=['status', 'response_time', 'parking_slot', 'updated_at'])

            create_notification(
                slot_request.user,
                f"Your parking slot request has been approved. Slot: {slot.slot_number}, Location: {slot.location}",
            )

        logger.info(f"Slot request {slot_request.id} approved by {admin.email}: slot {slot.slot_number}")
        self._send_best_effort(slot_request, 'slot_approved', {
            'slot_number': slot.slot_number,
            'slot_location': slot.location,
        })
        return slot_request, session

    def reject(self, request_id, note, admin):
        authorize(admin, 'slot_request.decide', message='Only administrators can reject requests')
        note = (note or '').strip()
        if not note:
            raise ValidationError('A rejection note is required')

        with transaction.atomic():
            slot_request = self._locked_request(request_id)
            if slot_request.status != SlotRequest.Status.PENDING:
                raise ConflictError(f"Request is already {slot_request.status.lower()}")

            slot_request.status = SlotRequest.Status.REJECTED
            slot_request.response_time = self.clock()
            slot_request.response_note = note
            slot_request.save(update_fields=['status', 'response_time', 'response_note', 'updated_at'])

            create_notification(slot_request.user, f"Your parking slot request has been rejected. Reason: {note}")

        logger.info(f"Slot request {slot_request.id} rejected by {admin.email}")
        self._send_best_effort(slot_request, 'slot_rejected', {'reason': note})
        return slot_request

    def _send_best_effort(self, slot_request, template, context):
        user = slot_request.user
        vehicle = slot_request.vehicle
        context = {
            'name': user.name,
            'vehicle_info': f"{vehicle.plate_number} ({vehicle.vehicle_type})",
            **context,
        }
        try:
            self.email_sender.send_template(user.email, template, context, name=user.name)
        except Exception as e:
            logger.error(f"Failed to send {template} email to {user.email}: {str(e)}")
