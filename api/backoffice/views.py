import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from api.permissions import IsAdmin
from api.serializers import (
    AdminUserSerializer,
    ApproveSerializer,
    ParkingSessionSerializer,
    ParkingSlotSerializer,
    RejectSerializer,
    SlotRequestSerializer,
)
from api.views import slot_request_workflow, validated
from nepark.exceptions import ConflictError, NotFoundError
from parking_sessions.services import ParkingSessionLifecycle
from parking_slots.models import ParkingSlot
from parking_slots.services import delete_slot, ensure_slot_editable, seed_slots
from users.models import User

logger = logging.getLogger(__name__)

SLOT_NUMBER_TAKEN = 'Parking slot with this number already exists'


class BackofficeUserListAPIView(generics.ListAPIView):
    serializer_class = AdminUserSerializer
    permission_classes = [IsAuthenticated, IsAdmin]

    def get_queryset(self):
        params = self.request.query_params
        users = User.objects.annotate(vehicle_count=Count('vehicles'))
        if params.get('role'):
            users = users.filter(role=params['role'].upper())
        search = params.get('search')
        if search:
            users = users.filter(Q(name__icontains=search) | Q(email__icontains=search))
        return users.order_by('-created_at', '-id')


class BackofficeParkingSlotCreateAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request):
        serializer = ParkingSlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if ParkingSlot.objects.filter(slot_number=serializer.validated_data['slot_number']).exists():
            raise ConflictError(SLOT_NUMBER_TAKEN)
        try:
            with transaction.atomic():
                slot = serializer.save()
        except IntegrityError:
            raise ConflictError(SLOT_NUMBER_TAKEN)

        logger.info(f"Parking slot {slot.slot_number} created by {request.user.email}")
        return Response({
            'status': 'success',
            'message': 'Parking slot created successfully',
            'slot': ParkingSlotSerializer(slot).data,
        }, status=status.HTTP_201_CREATED)


class BackofficeParkingSlotDetailAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def patch(self, request, slot_id):
        with transaction.atomic():
            slot = ParkingSlot.objects.select_for_update().filter(id=slot_id).first()
            if slot is None:
                raise NotFoundError('Parking slot not found')
            serializer = ParkingSlotSerializer(slot, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            slot_number = serializer.validated_data.get('slot_number')
            if slot_number and ParkingSlot.objects.filter(slot_number=slot_number).exclude(id=slot.id).exists():
                raise ConflictError(SLOT_NUMBER_TAKEN)
            ensure_slot_editable(slot, serializer.validated_data)
            try:
                with transaction.atomic():
                    slot = serializer.save()
            except IntegrityError:
                raise ConflictError(SLOT_NUMBER_TAKEN)

        logger.info(f"Parking slot {slot.slot_number} updated by {request.user.email}")
        return Response({
            'status': 'success',
            'message': 'Parking slot updated successfully',
            'slot': ParkingSlotSerializer(slot).data,
        })

    put = patch

    def delete(self, request, slot_id):
        delete_slot(slot_id)
        return Response({'status': 'success', 'message': 'Parking slot deleted successfully'})


class SeedParkingSlotsAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request):
        slots = seed_slots()
        return Response({
            'status': 'success',
            'message': f'{len(slots)} parking slots created successfully',
            'count': len(slots),
        }, status=status.HTTP_201_CREATED)


class ApproveSlotRequestAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request, request_id):
        data = validated(ApproveSerializer, request)
        slot_request, session = slot_request_workflow().approve(request_id, data['slot_id'], request.user)
        return Response({
            'status': 'success',
            'message': 'Slot request approved successfully',
            'slot_request': SlotRequestSerializer(slot_request).data,
            'session': ParkingSessionSerializer(session).data,
        })


class RejectSlotRequestAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request, request_id):
        data = validated(RejectSerializer, request)
        slot_request = slot_request_workflow().reject(request_id, data['reason'], request.user)
        return Response({
            'status': 'success',
            'message': 'Slot request rejected successfully',
            'slot_request': SlotRequestSerializer(slot_request).data,
        })


class CheckOutAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request, session_id):
        session = ParkingSessionLifecycle().check_out(session_id, request.user)
        return Response({
            'status': 'success',
            'message': 'Vehicle checked out successfully',
            'session': ParkingSessionSerializer(session).data,
        })
