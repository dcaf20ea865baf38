import logging

from django.db import IntegrityError, connection, transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from nepark.exceptions import (
    AlreadyVerified,
    CodeExpired,
    CodeMismatch,
    DuplicateEmail,
    EmailNotVerified,
    InvalidCredentials,
    NoCodeIssued,
    NotFoundError,
    ValidationError,
)
from users.models import User

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = 'If your email exists in our system, a reset code has been sent.'


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access_token': str(refresh.access_token),
        'refresh_token': str(refresh),
    }


def _lock_user_table():
    # Serialises concurrent first registrations; SQLite already serialises writers.
    if connection.vendor == 'postgresql':
        with connection.cursor() as cursor:
            cursor.execute(f'LOCK TABLE {User._meta.db_table} IN SHARE ROW EXCLUSIVE MODE')


def _check_code(stored_code, expires, code, label):
    if not stored_code or not expires:
        raise NoCodeIssued(f'No {label} code found')
    if expires < timezone.now():
        raise CodeExpired(f'{label.capitalize()} code expired')
    if stored_code != code:
        raise CodeMismatch(f'Invalid {label} code')


class CredentialService:
    """Registration, email verification, password reset and login.

    Email delivery failures are not swallowed here: each flow runs in a
    transaction and a failed send rolls it back and surfaces to the caller.
    """

    def __init__(self, email_sender, token_issuer=issue_tokens):
        self.email_sender = email_sender
        self.token_issuer = token_issuer

    def _locked_user(self, email):
        user = User.objects.select_for_update().filter(email=User.objects.normalize_email(email)).first()
        if user is None:
            logger.error(f"User not found for email: {email}")
            raise NotFoundError('User not found')
        return user

    def register(self, email, password, name, phone_number=None):
        email = User.objects.normalize_email(email)
        logger.info(f"Registering user - email: {email}")

        with transaction.atomic():
            _lock_user_table()
            if User.objects.filter(email=email).exists():
                raise DuplicateEmail()

            # The very first account administers the system
            role = User.Role.USER if User.objects.exists() else User.Role.ADMIN
            try:
                user = User.objects.create_user(
                    email=email,
                    name=name,
                    phone_number=phone_number,
                    password=password,
                    role=role,
                )
            except IntegrityError:
                raise DuplicateEmail()

            code = user.issue_verification_code()
            user.save(update_fields=['verification_code', 'verification_expires'])
            logger.info(f"Generated verification code for {email}: [REDACTED]")

            self.email_sender.send_template(email, 'verification', {'name': name, 'code': code}, name=name)

        logger.info(f"User {email} registered with role {user.role}")
        return user

    def verify_email(self, email, code):
        with transaction.atomic():
            user = self._locked_user(email)
            if user.is_verified:
                raise AlreadyVerified()
            _check_code(user.verification_code, user.verification_expires, code, 'verification')

            user.is_verified = True
            user.clear_verification_code()
            user.save(update_fields=['is_verified', 'verification_code', 'verification_expires', 'updated_at'])
            self.email_sender.send_template(user.email, 'welcome', {'name': user.name}, name=user.name)

        logger.info(f"User {user.email} verified successfully")
        return user, self.token_issuer(user)

    def resend_code(self, email):
        with transaction.atomic():
            user = self._locked_user(email)
            if user.is_verified:
                logger.info(f"Resend code attempt for already verified user: {email}")
                raise AlreadyVerified()

            code = user.issue_verification_code()
            user.save(update_fields=['verification_code', 'verification_expires', 'updated_at'])
            self.email_sender.send_template(user.email, 'verification', {'name': user.name, 'code': code}, name=user.name)

        logger.info(f"Verification code resent for {email}: [REDACTED]")

    def forgot_password(self, email):
        with transaction.atomic():
            user = User.objects.select_for_update().filter(email=User.objects.normalize_email(email)).first()
            if user is None:
                logger.info(f"Password reset requested for unknown email: {email}")
                return FORGOT_PASSWORD_MESSAGE

            code = user.issue_reset_code()
            user.save(update_fields=['reset_code', 'reset_expires', 'updated_at'])
            self.email_sender.send_template(user.email, 'password_reset', {'name': user.name, 'code': code}, name=user.name)

        logger.info(f"Password reset code issued for {email}: [REDACTED]")
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, email, code, new_password):
        with transaction.atomic():
            user = self._locked_user(email)
            _check_code(user.reset_code, user.reset_expires, code, 'reset')

            user.set_password(new_password)
            user.clear_reset_code()
            user.save(update_fields=['password', 'reset_code', 'reset_expires', 'updated_at'])
            self.email_sender.send_template(user.email, 'password_changed', {'name': user.name}, name=user.name)

        logger.info(f"Password reset for user {user.email}")
        return user

    def login(self, email, password):
        user = User.objects.filter(email=User.objects.normalize_email(email)).first()
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            logger.error(f"Login attempt with non-existent email: {email}")
            raise InvalidCredentials()

        if not user.check_password(password):
            logger.warning(f"Invalid password attempt for user {email}")
            raise InvalidCredentials()

        if not user.is_verified:
            logger.warning(f"Unverified email login attempt for user {email}")
            raise EmailNotVerified()

        logger.info(f"User {email} logged in successfully")
        return user, self.token_issuer(user)

    def update_profile(self, user, **changes):
        fields = [field for field in ('name', 'phone_number') if field in changes]
        for field in fields:
            setattr(user, field, changes[field])
        if fields:
            user.save(update_fields=fields + ['updated_at'])
            logger.info(f"Profile updated successfully for user {user.email}")
        return user

    def change_password(self, user, current_password, new_password):
        if not user.check_password(current_password):
            logger.warning(f"Wrong current password supplied by user {user.email}")
            raise ValidationError('Current password is incorrect')
        user.set_password(new_password)
        user.save(update_fields=['password', 'updated_at'])
        logger.info(f"Password changed for user {user.email}")
