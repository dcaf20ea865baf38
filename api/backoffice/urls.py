from django.urls import path

from .views import (
    ApproveSlotRequestAPIView,
    BackofficeParkingSlotDetailAPIView,
    BackofficeParkingSlotCreateAPIView,
    BackofficeUserListAPIView,
    CheckOutAPIView,
    RejectSlotRequestAPIView,
    SeedParkingSlotsAPIView,
)

urlpatterns = [
    path('users/', BackofficeUserListAPIView.as_view(), name='backoffice-users'),
    path('parking-slots/', BackofficeParkingSlotCreateAPIView.as_view(), name='backoffice-parking-slots'),
    path('parking-slots/seed/', SeedParkingSlotsAPIView.as_view(), name='backoffice-parking-slots-seed'),
    path('parking-slots/<int:slot_id>/', BackofficeParkingSlotDetailAPIView.as_view(), name='backoffice-parking-slot-detail'),
    path('slot-requests/<int:request_id>/approve/', ApproveSlotRequestAPIView.as_view(), name='backoffice-slot-request-approve'),
    path('slot-requests/<int:request_id>/reject/', RejectSlotRequestAPIView.as_view(), name='backoffice-slot-request-reject'),
    path('parking-sessions/<int:session_id>/check-out/', CheckOutAPIView.as_view(), name='backoffice-parking-session-check-out'),
]
