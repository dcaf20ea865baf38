"""Error taxonomy shared by the services and the REST API.

Every business failure is raised as one of the exceptions below. They are DRF
``APIException`` subclasses, so views never build error responses by hand:
``api_exception_handler`` renders them as ``{"status": "error", "error": ...}``.
"""

import logging

from rest_framework import status
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ParkingError(drf_exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed'
    default_code = 'error'


class ValidationError(ParkingError):
    default_detail = 'Invalid input'
    default_code = 'validation_error'


class NotFoundError(ParkingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ForbiddenError(ParkingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Forbidden'
    default_code = 'forbidden'


class ConflictError(ParkingError):
    default_detail = 'Conflicting state'
    default_code = 'conflict'


class ExpiredError(ParkingError):
    default_detail = 'Code expired'
    default_code = 'expired'


class AuthenticationError(ParkingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication failed'
    default_code = 'authentication_failed'


class EmailDeliveryError(ParkingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to send email'
    default_code = 'email_delivery_failed'


# Credential lifecycle

class DuplicateEmail(ConflictError):
    default_detail = 'User already exists'
    default_code = 'duplicate_email'


class AlreadyVerified(ConflictError):
    default_detail = 'Email already verified'
    default_code = 'already_verified'


class NoCodeIssued(ValidationError):
    default_detail = 'No verification code found'
    default_code = 'no_code_issued'


class CodeExpired(ExpiredError):
    default_detail = 'Verification code expired'
    default_code = 'code_expired'


class CodeMismatch(ValidationError):
    default_detail = 'Invalid verification code'
    default_code = 'code_mismatch'


class InvalidCredentials(AuthenticationError):
    default_detail = 'Invalid credentials'
    default_code = 'invalid_credentials'


class EmailNotVerified(ForbiddenError):
    default_detail = 'Email not verified'
    default_code = 'email_not_verified'


def api_exception_handler(exc, context):
    """Render every failure as a JSON error payload.

    Unexpected exceptions are logged with their traceback and answered with a
    generic 500 so internal details never reach the client.
    """
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if response is None:
        logger.exception(f"Unhandled error in {view_name}: {exc}")
        return Response(
            {'status': 'error', 'error': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {'status': 'error', 'error': 'Validation error', 'details': response.data}
        return response

    detail = response.data.get('detail', response.data) if isinstance(response.data, dict) else response.data
    if response.status_code >= 500:
        logger.error(f"{view_name} failed: {detail}")
    else:
        logger.warning(f"{view_name} rejected request: {detail}")
    response.data = {'status': 'error', 'error': detail}
    return response
