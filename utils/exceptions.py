"""
Reservation errors and the API exception handler.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('api')


def custom_exception_handler(exc, context):
    """Render every error as {'success': False, 'error': ..., 'code': ...}."""
    if isinstance(exc, ObjectDoesNotExist):
        return Response(
            {'success': False, 'error': 'Not found.', 'code': 'not_found'},
            status=status.HTTP_404_NOT_FOUND
        )

    if isinstance(exc, DjangoValidationError):
        return Response(
            {'success': False, 'error': exc.messages, 'code': 'invalid'},
            status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, DRFValidationError):
        return Response(
            {'success': False, 'error': exc.detail, 'code': 'invalid'},
            status=status.HTTP_400_BAD_REQUEST
        )

    response = exception_handler(exc, context)
    if response is not None:
        code = exc.get_codes() if isinstance(exc, APIException) else None
        response.data = {
            'success': False,
            'error': exc.detail if isinstance(exc, APIException) else response.data,
            'code': code if isinstance(code, str) else getattr(exc, 'default_code', 'error'),
        }
        return response

    view = context.get('view')
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else 'unknown view')
    return Response(
        {'success': False, 'error': 'An unexpected error occurred.', 'code': 'server_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


class InvalidJourneyDateError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Journey date is outside the booking window.'
    default_code = 'invalid_journey_date'


class RouteNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'This train does not run from the source to the destination station.'
    default_code = 'route_not_found'


class FareUnavailableError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot calculate fare for this route.'
    default_code = 'fare_unavailable'


class InvalidPaymentModeError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Valid payment_mode is required.'
    default_code = 'invalid_payment_mode'


class QuotaExceededError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Monthly booking quota exceeded. Please try again next month.'
    default_code = 'quota_exceeded'


class IdentityMismatchError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Passenger name does not match the employee or dependent.'
    default_code = 'identity_mismatch'


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Ticket not found.'
    default_code = 'not_found'


class AlreadyCancelledError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Ticket is already cancelled.'
    default_code = 'already_cancelled'


class TransactionFailure(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The reservation could not be completed. No changes were saved.'
    default_code = 'transaction_failure'
