from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    RegisterAPIView,
    VerifyEmailAPIView,
    ResendCodeAPIView,
    ForgotPasswordAPIView,
    ResetPasswordAPIView,
    LoginAPIView,
    UserProfileAPIView,
    ChangePasswordAPIView,
    VehicleListCreateAPIView,
    VehicleDetailAPIView,
    ParkingSlotListAPIView,
    ParkingSlotDetailAPIView,
    SlotRequestListCreateAPIView,
    SlotRequestDetailAPIView,
    ParkingSessionListAPIView,
    ParkingSessionDetailAPIView,
    CheckInAPIView,
    RequestCheckoutAPIView,
    NotificationListAPIView,
    NotificationReadAPIView,
    NotificationReadAllAPIView,
)

urlpatterns = [
    path('auth/register/', RegisterAPIView.as_view(), name='register'),
    path('auth/verify-email/', VerifyEmailAPIView.as_view(), name='verify-email'),
    path('auth/resend-code/', ResendCodeAPIView.as_view(), name='resend-code'),
    path('auth/forgot-password/', ForgotPasswordAPIView.as_view(), name='forgot-password'),
    path('auth/reset-password/', ResetPasswordAPIView.as_view(), name='reset-password'),
    path('auth/login/', LoginAPIView.as_view(), name='login'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('profile/', UserProfileAPIView.as_view(), name='profile'),
    path('profile/change-password/', ChangePasswordAPIView.as_view(), name='change-password'),
    path('vehicles/', VehicleListCreateAPIView.as_view(), name='vehicles'),
    path('vehicles/<int:vehicle_id>/', VehicleDetailAPIView.as_view(), name='vehicle-detail'),
    path('parking-slots/', ParkingSlotListAPIView.as_view(), name='parking-slots'),
    path('parking-slots/<int:slot_id>/', ParkingSlotDetailAPIView.as_view(), name='parking-slot-detail'),
    path('slot-requests/', SlotRequestListCreateAPIView.as_view(), name='slot-requests'),
    path('slot-requests/<int:request_id>/', SlotRequestDetailAPIView.as_view(), name='slot-request-detail'),
    path('parking-sessions/', ParkingSessionListAPIView.as_view(), name='parking-sessions'),
    path('parking-sessions/check-in/', CheckInAPIView.as_view(), name='check-in'),
    path('parking-sessions/<int:session_id>/', ParkingSessionDetailAPIView.as_view(), name='parking-session-detail'),
    path('parking-sessions/<int:session_id>/request-checkout/', RequestCheckoutAPIView.as_view(), name='request-checkout'),
    path('notifications/', NotificationListAPIView.as_view(), name='notifications'),
    path('notifications/read-all/', NotificationReadAllAPIView.as_view(), name='notifications-read-all'),
    path('notifications/<int:notification_id>/read/', NotificationReadAPIView.as_view(), name='notification-read'),

    # Admin-only endpoints live under /backoffice/
    path('backoffice/', include('api.backoffice.urls')),
]
