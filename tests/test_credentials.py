"""Tests for registration, verification, password reset and login."""

from datetime import timedelta

import pytest
from django.utils import timezone

from nepark.exceptions import (
    AlreadyVerified,
    CodeExpired,
    CodeMismatch,
    DuplicateEmail,
    EmailDeliveryError,
    EmailNotVerified,
    InvalidCredentials,
    NoCodeIssued,
    NotFoundError,
    ValidationError,
)
from users.models import User, generate_code
from users.services import FORGOT_PASSWORD_MESSAGE, CredentialService

pytestmark = pytest.mark.django_db


def fake_tokens(user):
    return {'access_token': f'access-{user.pk}', 'refresh_token': f'refresh-{user.pk}'}


@pytest.fixture
def service(email_sender):
    return CredentialService(email_sender, token_issuer=fake_tokens)


@pytest.fixture
def registered(service):
    return service.register('alice@example.com', 'Secret@123', 'Alice')


class TestCodes:
    """Test verification code generation."""

    def test_code_is_six_digits(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999


class TestRegister:
    """Test account registration."""

    def test_first_user_is_admin_then_users(self, service):
        first = service.register('first@example.com', 'Secret@123', 'First')
        second = service.register('second@example.com', 'Secret@123', 'Second')

        assert first.role == User.Role.ADMIN
        assert second.role == User.Role.USER

    def test_register_stores_hash_and_sends_code(self, registered, email_outbox):
        assert registered.password != 'Secret@123'
        assert registered.check_password('Secret@123')
        assert not registered.is_verified
        assert registered.verification_expires > timezone.now() + timedelta(hours=5)

        message = email_outbox.outbox[-1]
        assert message['to'] == 'alice@example.com'
        assert message['template'] == 'verification'
        assert message['context']['code'] == registered.verification_code

    def test_duplicate_email_rejected(self, service, registered):
        with pytest.raises(DuplicateEmail):
            service.register('alice@example.com', 'Other@123', 'Alice Again')

    def test_email_failure_rolls_back(self, service, email_outbox):
        email_outbox.fail = True

        with pytest.raises(EmailDeliveryError):
            service.register('bob@example.com', 'Secret@123', 'Bob')

        assert not User.objects.filter(email='bob@example.com').exists()


class TestVerifyEmail:
    """Test email verification."""

    def test_verify_succeeds_once(self, service, registered):
        user, tokens = service.verify_email('alice@example.com', registered.verification_code)

        assert user.is_verified
        assert user.verification_code is None
        assert tokens['access_token'] == f'access-{user.pk}'

        with pytest.raises(AlreadyVerified):
            service.verify_email('alice@example.com', '123456')

    def test_verify_sends_welcome(self, service, registered, email_outbox):
        service.verify_email('alice@example.com', registered.verification_code)
        assert email_outbox.outbox[-1]['template'] == 'welcome'

    def test_unknown_email(self, service):
        with pytest.raises(NotFoundError):
            service.verify_email('nobody@example.com', '123456')

    def test_wrong_code(self, service, registered):
        wrong = '100000' if registered.verification_code != '100000' else '100001'
        with pytest.raises(CodeMismatch):
            service.verify_email('alice@example.com', wrong)

    def test_expired_code(self, service, registered):
        registered.verification_expires = timezone.now() - timedelta(seconds=1)
        registered.save()

        with pytest.raises(CodeExpired):
            service.verify_email('alice@example.com', registered.verification_code)

    def test_missing_code(self, service, registered):
        registered.clear_verification_code()
        registered.save()

        with pytest.raises(NoCodeIssued):
            service.verify_email('alice@example.com', '123456')

    def test_consumed_code_on_unverified_account(self, service, registered):
        """A code is cleared once used, so replaying it never re-verifies."""
        code = registered.verification_code
        service.verify_email('alice@example.com', code)
        User.objects.filter(email='alice@example.com').update(is_verified=False)

        with pytest.raises(NoCodeIssued):
            service.verify_email('alice@example.com', code)
        assert not User.objects.get(email='alice@example.com').is_verified


class TestResendCode:
    """Test verification code resend."""

    def test_resend_replaces_code(self, service, registered, email_outbox):
        service.resend_code('alice@example.com')

        registered.refresh_from_db()
        assert email_outbox.last_code('alice@example.com') == registered.verification_code
        assert len(email_outbox.outbox) == 2

    def test_resend_for_verified_user(self, service, user):
        with pytest.raises(AlreadyVerified):
            service.resend_code(user.email)


class TestPasswordReset:
    """Test forgot/reset password."""

    def test_forgot_password_message_is_identical(self, service, user, email_outbox):
        known = service.forgot_password(user.email)
        unknown = service.forgot_password('ghost@example.com')

        assert known == unknown == FORGOT_PASSWORD_MESSAGE
        assert [m['to'] for m in email_outbox.outbox] == [user.email]

    def test_reset_password(self, service, user, email_outbox):
        service.forgot_password(user.email)
        code = email_outbox.last_code(user.email)

        service.reset_password(user.email, code, 'NewSecret@123')

        user.refresh_from_db()
        assert user.check_password('NewSecret@123')
        assert user.reset_code is None
        assert email_outbox.outbox[-1]['template'] == 'password_changed'

    def test_reset_without_code(self, service, user):
        with pytest.raises(NoCodeIssued):
            service.reset_password(user.email, '123456', 'NewSecret@123')

    def test_reset_with_expired_code(self, service, user):
        code = user.issue_reset_code()
        user.reset_expires = timezone.now() - timedelta(minutes=1)
        user.save()

        with pytest.raises(CodeExpired):
            service.reset_password(user.email, code, 'NewSecret@123')


class TestLogin:
    """Test login."""

    def test_login_success(self, service, user):
        logged_in, tokens = service.login(user.email, 'User@1234')
        assert logged_in == user
        assert tokens['refresh_token'] == f'refresh-{user.pk}'

    def test_unknown_user_and_wrong_password_look_the_same(self, service, user):
        with pytest.raises(InvalidCredentials) as unknown:
            service.login('ghost@example.com', 'User@1234')
        with pytest.raises(InvalidCredentials) as wrong:
            service.login(user.email, 'Wrong@1234')

        assert str(unknown.value.detail) == str(wrong.value.detail)

    def test_unverified_user(self, service, registered):
        with pytest.raises(EmailNotVerified):
            service.login('alice@example.com', 'Secret@123')


class TestProfile:
    """Test profile changes."""

    def test_change_password_requires_current(self, service, user):
        with pytest.raises(ValidationError):
            service.change_password(user, 'nope', 'NewSecret@123')

        service.change_password(user, 'User@1234', 'NewSecret@123')
        user.refresh_from_db()
        assert user.check_password('NewSecret@123')

    def test_update_profile(self, service, user):
        service.update_profile(user, name='Johnny', phone_number='0788000000')
        user.refresh_from_db()
        assert user.name == 'Johnny'
        assert user.phone_number == '0788000000'
