from django.apps import AppConfig


class ParkingSlotsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'parking_slots'
    verbose_name = 'Parking slots'
