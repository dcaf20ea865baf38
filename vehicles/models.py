from django.conf import settings
from django.db import models


class VehicleSize(models.TextChoices):
    SMALL = 'SMALL', 'Small'
    MEDIUM = 'MEDIUM', 'Medium'
    LARGE = 'LARGE', 'Large'


class VehicleType(models.TextChoices):
    CAR = 'CAR', 'Car'
    MOTORCYCLE = 'MOTORCYCLE', 'Motorcycle'
    TRUCK = 'TRUCK', 'Truck'
    VAN = 'VAN', 'Van'
    BUS = 'BUS', 'Bus'


class Vehicle(models.Model):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='vehicles')
    plate_number = models.CharField(max_length=20, unique=True)
    size = models.CharField(max_length=10, choices=VehicleSize.choices)
    vehicle_type = models.CharField(max_length=20, choices=VehicleType.choices)
    color = models.CharField(max_length=30, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.plate_number

    @staticmethod
    def normalize_plate(plate_number):
        return plate_number.upper().replace(' ', '')
