from django.apps import AppConfig


class SlotRequestsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'slot_requests'
    verbose_name = 'Slot requests'
