import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from nepark.emails import get_email_sender
from nepark.exceptions import ConflictError, NotFoundError
from nepark.policy import authorize, is_admin
from notifications import services as notifications
from parking_sessions.models import ParkingSession
from parking_sessions.services import ParkingSessionLifecycle, visible_sessions
from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from slot_requests.services import SlotRequestWorkflow, visible_requests
from users.services import CredentialService
from vehicles.models import Vehicle
from .serializers import (
    ChangePasswordSerializer,
    CheckInSerializer,
    EmailSerializer,
    LoginSerializer,
    NotificationSerializer,
    ParkingSessionQuerySerializer,
    ParkingSessionSerializer,
    ParkingSlotSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    SlotRequestCreateSerializer,
    SlotRequestQuerySerializer,
    SlotRequestSerializer,
    SlotRequestUpdateSerializer,
    UserSerializer,
    VehicleSerializer,
    VerifyEmailSerializer,
)

logger = logging.getLogger(__name__)


def credential_service():
    return CredentialService(get_email_sender())


def slot_request_workflow():
    return SlotRequestWorkflow(get_email_sender())


def changed_fields(instance, changes, fields):
    return [field for field in fields if field in changes and changes[field] != getattr(instance, field)]


def validated(serializer_class, request, data=None, **kwargs):
    serializer = serializer_class(data=request.data if data is None else data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# Authentication

class RegisterAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(RegisterSerializer, request)
        user = credential_service().register(
            email=data['email'],
            password=data['password'],
            name=data['name'],
            phone_number=data.get('phone_number') or None,
        )
        return Response({
            'status': 'success',
            'message': 'User registered successfully. Check your email for the verification code.',
            'user': UserSerializer(user).data,
        }, status=status.HTTP_201_CREATED)


class VerifyEmailAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(VerifyEmailSerializer, request)
        user, tokens = credential_service().verify_email(data['email'], data['code'])
        return Response({
            'status': 'success',
            'message': 'Email verified successfully',
            'user': UserSerializer(user).data,
            **tokens,
        }, status=status.HTTP_200_OK)


class ResendCodeAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(EmailSerializer, request)
        credential_service().resend_code(data['email'])
        return Response({
            'status': 'success',
            'message': 'Verification code resent successfully',
        }, status=status.HTTP_200_OK)


class ForgotPasswordAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(EmailSerializer, request)
        message = credential_service().forgot_password(data['email'])
        return Response({'status': 'success', 'message': message}, status=status.HTTP_200_OK)


class ResetPasswordAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(ResetPasswordSerializer, request)
        credential_service().reset_password(data['email'], data['code'], data['new_password'])
        return Response({
            'status': 'success',
            'message': 'Password reset successfully',
        }, status=status.HTTP_200_OK)


class LoginAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = validated(LoginSerializer, request)
        user, tokens = credential_service().login(data['email'], data['password'])
        return Response({
            'status': 'success',
            'message': 'Login successful',
            'user': UserSerializer(user).data,
            **tokens,
        }, status=status.HTTP_200_OK)


# Profile

class UserProfileAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'status': 'success', 'user': UserSerializer(request.user).data})

    def patch(self, request):
        data = validated(ProfileUpdateSerializer, request)
        user = credential_service().update_profile(request.user, **data)
        return Response({
            'status': 'success',
            'message': 'Profile updated successfully',
            'user': UserSerializer(user).data,
        })


class ChangePasswordAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = validated(ChangePasswordSerializer, request)
        credential_service().change_password(request.user, data['current_password'], data['new_password'])
        return Response({'status': 'success', 'message': 'Password changed successfully'})


# Vehicles

class VehicleListCreateAPIView(generics.ListCreateAPIView):
    serializer_class = VehicleSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        vehicles = Vehicle.objects.select_related('owner')
        if not is_admin(self.request.user):
            vehicles = vehicles.filter(owner=self.request.user)
        search = self.request.query_params.get('search')
        if search:
            vehicles = vehicles.filter(plate_number__icontains=search)
        return vehicles.order_by('-created_at', '-id')

    def perform_create(self, serializer):
        plate_number = serializer.validated_data['plate_number']
        if Vehicle.objects.filter(plate_number=plate_number).exists():
            raise ConflictError('Vehicle with this plate number already exists')
        try:
            with transaction.atomic():
                serializer.save(owner=self.request.user)
        except IntegrityError:
            raise ConflictError('Vehicle with this plate number already exists')
        logger.info(f"Vehicle {plate_number} registered by {self.request.user.email}")

    def create(self, request, *args, **kwargs):
        response = super().create(request, *args, **kwargs)
        response.data = {'status': 'success', 'message': 'Vehicle created successfully', 'vehicle': response.data}
        return response


class VehicleDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get_vehicle(self, request, vehicle_id, action, lock=False):
        vehicles = Vehicle.objects.select_related('owner')
        if lock:
            vehicles = vehicles.select_for_update()
        vehicle = vehicles.filter(id=vehicle_id).first()
        if vehicle is None:
            raise NotFoundError('Vehicle not found')
        authorize(request.user, action, vehicle)
        return vehicle

    def get(self, request, vehicle_id):
        vehicle = self.get_vehicle(request, vehicle_id, 'vehicle.view')
        return Response({'status': 'success', 'vehicle': VehicleSerializer(vehicle).data})

    def patch(self, request, vehicle_id):
        with transaction.atomic():
            vehicle = self.get_vehicle(request, vehicle_id, 'vehicle.change', lock=True)
            serializer = VehicleSerializer(vehicle, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            plate_number = serializer.validated_data.get('plate_number')
            if plate_number and Vehicle.objects.filter(plate_number=plate_number).exclude(id=vehicle.id).exists():
                raise ConflictError('Vehicle with this plate number already exists')

            # An allocated slot was matched against the current type and size
            if changed_fields(vehicle, serializer.validated_data, ('vehicle_type', 'size')) and (
                SlotRequest.objects.filter(vehicle=vehicle, status=SlotRequest.Status.APPROVED).exists()
                or ParkingSession.objects.filter(vehicle=vehicle, status=ParkingSession.Status.ACTIVE).exists()
            ):
                raise ConflictError('Cannot change type or size of a vehicle with an allocated parking slot')
            try:
                with transaction.atomic():
                    serializer.save()
            except IntegrityError:
                raise ConflictError('Vehicle with this plate number already exists')
        return Response({
            'status': 'success',
            'message': 'Vehicle updated successfully',
            'vehicle': serializer.data,
        })

    put = patch

    def delete(self, request, vehicle_id):
        with transaction.atomic():
            vehicle = self.get_vehicle(request, vehicle_id, 'vehicle.delete', lock=True)
            if ParkingSession.objects.filter(vehicle=vehicle, status=ParkingSession.Status.ACTIVE).exists():
                raise ConflictError('Cannot delete vehicle with an active parking session')
            plate_number = vehicle.plate_number
            vehicle.delete()
        logger.info(f"Vehicle {plate_number} deleted by {request.user.email}")
        return Response({'status': 'success', 'message': 'Vehicle deleted successfully'})


# Parking slots

class ParkingSlotListAPIView(generics.ListAPIView):
    serializer_class = ParkingSlotSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        params = self.request.query_params
        slots = ParkingSlot.objects.all()
        for field in ('status', 'vehicle_type', 'size'):
            if params.get(field):
                slots = slots.filter(**{field: params[field].upper()})
        search = params.get('search')
        if search:
            slots = slots.filter(Q(slot_number__icontains=search) | Q(location__icontains=search))
        return slots.order_by('slot_number')


class ParkingSlotDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, slot_id):
        slot = ParkingSlot.objects.filter(id=slot_id).first()
        if slot is None:
            raise NotFoundError('Parking slot not found')
        return Response({'status': 'success', 'slot': ParkingSlotSerializer(slot).data})


# Slot requests

class SlotRequestListCreateAPIView(generics.ListAPIView):
    serializer_class = SlotRequestSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        params = self.request.query_params
        filters = validated(SlotRequestQuerySerializer, self.request, data=params)
        return visible_requests(
            self.request.user,
            status=(params.get('status') or '').upper() or None,
            search=params.get('search'),
            user_id=filters.get('user_id'),
        )

    def post(self, request):
        data = validated(SlotRequestCreateSerializer, request)
        slot_request = slot_request_workflow().create(data['vehicle_id'], request.user)
        return Response({
            'status': 'success',
            'message': 'Slot request created successfully',
            'slot_request': SlotRequestSerializer(slot_request).data,
        }, status=status.HTTP_201_CREATED)


class SlotRequestDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, request_id):
        slot_request = slot_request_workflow().get(request_id, request.user)
        return Response({'status': 'success', 'slot_request': SlotRequestSerializer(slot_request).data})

    def patch(self, request, request_id):
        data = validated(SlotRequestUpdateSerializer, request)
        slot_request = slot_request_workflow().update(request_id, data.get('vehicle_id'), request.user)
        return Response({
            'status': 'success',
            'message': 'Slot request updated successfully',
            'slot_request': SlotRequestSerializer(slot_request).data,
        })

    put = patch

    def delete(self, request, request_id):
        slot_request_workflow().delete(request_id, request.user)
        return Response({'status': 'success', 'message': 'Slot request deleted successfully'})


# Parking sessions

class ParkingSessionListAPIView(generics.ListAPIView):
    serializer_class = ParkingSessionSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        params = self.request.query_params
        filters = validated(ParkingSessionQuerySerializer, self.request, data=params)
        return visible_sessions(
            self.request.user,
            vehicle_id=filters.get('vehicle_id'),
            status=(params.get('status') or '').upper() or None,
        )


class ParkingSessionDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        session = ParkingSessionLifecycle().get(session_id, request.user)
        return Response({'status': 'success', 'session': ParkingSessionSerializer(session).data})


class CheckInAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = validated(CheckInSerializer, request)
        session = ParkingSessionLifecycle().check_in(data['vehicle_id'], request.user)
        return Response({
            'status': 'success',
            'message': 'Vehicle checked in successfully',
            'session': ParkingSessionSerializer(session).data,
        }, status=status.HTTP_201_CREATED)


class RequestCheckoutAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, session_id):
        session = ParkingSessionLifecycle().request_checkout(session_id, request.user)
        return Response({
            'status': 'success',
            'message': 'Checkout requested successfully',
            'session': ParkingSessionSerializer(session).data,
        })


# Notifications

class NotificationListAPIView(generics.ListAPIView):
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return notifications.list_for(self.request.user)


class NotificationReadAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, notification_id):
        notification = notifications.mark_read(notification_id, request.user)
        return Response({
            'status': 'success',
            'message': 'Notification marked as read',
            'notification': NotificationSerializer(notification).data,
        })

    post = patch


class NotificationReadAllAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request):
        updated = notifications.mark_all_read(request.user)
        return Response({
            'status': 'success',
            'message': 'All notifications marked as read',
            'updated': updated,
        })

    post = patch
