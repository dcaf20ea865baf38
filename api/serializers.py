import re

from rest_framework import serializers

from notifications.models import Notification
from parking_sessions.models import ParkingSession
from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from users.models import User
from vehicles.models import Vehicle


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone_number', 'role', 'is_verified', 'created_at']
        read_only_fields = ['id', 'email', 'role', 'is_verified', 'created_at']


class AdminUserSerializer(UserSerializer):
    vehicle_count = serializers.IntegerField(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['vehicle_count']


# Request bodies

PASSWORD_RULES = [
    (r'[a-z]', 'Password must contain at least one lowercase letter'),
    (r'[A-Z]', 'Password must contain at least one uppercase letter'),
    (r'\d', 'Password must contain at least one number'),
]


def validate_password(value):
    errors = [message for pattern, message in PASSWORD_RULES if not re.search(pattern, value)]
    if re.search(r'[<>]', value):
        errors.append("Password must not contain '<' or '>'")
    if errors:
        raise serializers.ValidationError(errors)
    return value


def password_field():
    return serializers.CharField(min_length=8, write_only=True, validators=[validate_password])


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    password = password_field()
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class EmailSerializer(serializers.Serializer):
    email = serializers.EmailField()


class VerifyEmailSerializer(EmailSerializer):
    code = serializers.CharField(max_length=6)


class ResetPasswordSerializer(EmailSerializer):
    code = serializers.CharField(max_length=6)
    new_password = password_field()


class LoginSerializer(EmailSerializer):
    password = serializers.CharField(write_only=True)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = password_field()


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100, required=False)
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class SlotRequestCreateSerializer(serializers.Serializer):
    vehicle_id = serializers.IntegerField()


class SlotRequestUpdateSerializer(serializers.Serializer):
    vehicle_id = serializers.IntegerField(required=False)


class ApproveSerializer(serializers.Serializer):
    slot_id = serializers.IntegerField()


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class CheckInSerializer(serializers.Serializer):
    vehicle_id = serializers.IntegerField()


# Resources

class VehicleSerializer(serializers.ModelSerializer):
    owner = UserSerializer(read_only=True)

    class Meta:
        model = Vehicle
        fields = ['id', 'plate_number', 'size', 'vehicle_type', 'color', 'owner', 'created_at', 'updated_at']
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']
        # Uniqueness is checked in the view so a duplicate plate is a conflict
        extra_kwargs = {'plate_number': {'validators': []}}

    def validate_plate_number(self, value):
        plate_number = Vehicle.normalize_plate(value)
        if not plate_number:
            raise serializers.ValidationError('Plate number is required')
        return plate_number


class ParkingSlotSerializer(serializers.ModelSerializer):
    class Meta:
        model = ParkingSlot
        fields = ['id', 'slot_number', 'location', 'size', 'vehicle_type', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {'slot_number': {'validators': []}}


class SlotRequestSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    vehicle = VehicleSerializer(read_only=True)
    parking_slot = ParkingSlotSerializer(read_only=True)

    class Meta:
        model = SlotRequest
        fields = [
            'id', 'user', 'vehicle', 'parking_slot', 'status',
            'request_time', 'response_time', 'response_note', 'updated_at',
        ]
        read_only_fields = fields


class ParkingSessionSerializer(serializers.ModelSerializer):
    vehicle = VehicleSerializer(read_only=True)
    slot = ParkingSlotSerializer(read_only=True)
    duration_minutes = serializers.SerializerMethodField()

    class Meta:
        model = ParkingSession
        fields = [
            'id', 'vehicle', 'slot', 'slot_request', 'entry_time', 'exit_time',
            'duration_minutes', 'fee', 'status', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_duration_minutes(self, obj):
        if obj.duration is None:
            return None
        return int(obj.duration.total_seconds() // 60)


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'message', 'read', 'created_at']
        read_only_fields = fields


# Query strings

class SlotRequestQuerySerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False)


class ParkingSessionQuerySerializer(serializers.Serializer):
    vehicle_id = serializers.IntegerField(required=False)
