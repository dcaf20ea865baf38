import secrets

from django.conf import settings
from django.contrib.auth.models import BaseUserManager, AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone


def generate_code():
    """Six-digit numeric code drawn uniformly from 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class UserManager(BaseUserManager):
    def create_user(self, email, name, phone_number=None, password=None, **extra_fields):
        if not email:
            raise ValueError('Users must have an email address')
        email = self.normalize_email(email)
        user = self.model(email=email, name=name, phone_number=phone_number, **extra_fields)
        user.set_password(password)  # Hashes the main password
        user.save(using=self._db)
        return user

    def create_superuser(self, email, name, phone_number=None, password=None, **extra_fields):
        extra_fields.setdefault('role', User.Role.ADMIN)
        extra_fields.setdefault('is_verified', True)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        if extra_fields.get('role') != User.Role.ADMIN:
            raise ValueError('Superuser must have role=ADMIN.')
        return self.create_user(email, name, phone_number, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        USER = 'USER', 'User'
        ADMIN = 'ADMIN', 'Admin'

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)

    is_verified = models.BooleanField(default=False)
    verification_code = models.CharField(max_length=6, blank=True, null=True)
    verification_expires = models.DateTimeField(blank=True, null=True)
    reset_code = models.CharField(max_length=6, blank=True, null=True)
    reset_expires = models.DateTimeField(blank=True, null=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    def __str__(self):
        return self.email

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    def issue_verification_code(self):
        """Replace any pending verification code with a fresh one."""
        self.verification_code = generate_code()
        self.verification_expires = timezone.now() + settings.VERIFICATION_CODE_TTL
        return self.verification_code

    def clear_verification_code(self):
        self.verification_code = None
        self.verification_expires = None

    def issue_reset_code(self):
        self.reset_code = generate_code()
        self.reset_expires = timezone.now() + settings.VERIFICATION_CODE_TTL
        return self.reset_code

    def clear_reset_code(self):
        self.reset_code = None
        self.reset_expires = None
