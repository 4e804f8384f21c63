# lifeflow/exceptions.py
"""
Domain exceptions and the REST framework exception handler.

Every error leaves the API as ``{"error": "<message>"}``.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, ValidationError
from rest_framework.response import Response
from rest_framework.settings import api_settings

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists'
    default_code = 'conflict'


class InvalidTransition(APIException):
    """Raised by model lifecycle methods when the current state forbids the move."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation not allowed in the current state'
    default_code = 'invalid_transition'


class TokenRejected(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Invalid or expired token'
    default_code = 'token_not_valid'


def _first_error(detail, field=None):
    """
    Walk a (possibly nested) ValidationError detail and return the first
    (field, message) pair.
    """
    if isinstance(detail, dict):
        for key, value in detail.items():
            name = field if key == api_settings.NON_FIELD_ERRORS_KEY else key
            return _first_error(value, name)
    elif isinstance(detail, (list, tuple)):
        for item in detail:
            return _first_error(item, field)
    else:
        return field, str(detail)
    return field, 'Invalid input'


def api_exception_handler(exc, context):
    # rest_framework.views resolves the authentication classes on import,
    # which import this module
    from rest_framework.views import exception_handler

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.messages[0] if exc.messages else 'Invalid input')

    if isinstance(exc, DatabaseError):
        logger.error("Database error in %s", context.get('view'), exc_info=exc)
        return Response(
            {'error': 'Service temporarily unavailable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = exception_handler(exc, context)

    if response is None:
        logger.error("Unhandled error in %s", context.get('view'), exc_info=exc)
        body = {'error': 'Internal server error'}
        if settings.DEBUG:
            body['detail'] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        field, message = _first_error(exc.detail)
        body = {'error': message}
        if field:
            body['field'] = field
    elif isinstance(exc, NotAuthenticated):
        body = {'error': 'Access token required'}
    else:
        detail = getattr(exc, 'detail', None)
        if isinstance(detail, (dict, list)):
            _, message = _first_error(detail)
        else:
            message = str(detail) if detail is not None else 'Request failed'
        body = {'error': message}

    response.data = body
    return response
