from django.apps import AppConfig


class ParkingSessionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'parking_sessions'
    verbose_name = 'Parking sessions'
