"""
Application error taxonomy and the DRF exception handler that renders it.

Every error leaves the API in the same envelope::

    {"error": {"message": "...", "code": "NOT_FOUND", "statusCode": 404}}
"""
import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class AppError(exceptions.APIException):
    """Base class for domain errors raised by the service layer"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'
    default_code = 'INTERNAL_ERROR'

    def __init__(self, message=None, code=None, details=None):
        super().__init__(detail=message, code=code)
        self.details = details

    @property
    def message(self):
        return str(self.detail)

    @property
    def code(self):
        return self.get_codes()

    def to_dict(self):
        body = {
            'message': self.message,
            'code': self.code,
            'statusCode': self.status_code,
        }
        if self.details:
            body['details'] = self.details
        return {'error': body}


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input'
    default_code = 'VALIDATION_ERROR'


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found'
    default_code = 'NOT_FOUND'


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists'
    default_code = 'CONFLICT'


class InsufficientStock(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient stock'
    default_code = 'INSUFFICIENT_STOCK'


class InternalError(AppError):
    pass


def _code_for(exc, status_code):
    if isinstance(exc, (Http404, exceptions.NotFound)):
        return 'NOT_FOUND'
    if isinstance(exc, exceptions.ValidationError):
        return 'VALIDATION_ERROR'
    if isinstance(exc, exceptions.APIException):
        return str(exc.default_code).upper()
    return 'ERROR' if status_code < 500 else 'INTERNAL_ERROR'


def app_exception_handler(exc, context):
    """
    REST framework exception handler.

    AppError subclasses are rendered directly; exceptions REST framework knows
    about keep their status code but are wrapped in the error envelope; anything
    else is logged and turned into a 500.
    """
    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}")
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        data = response.data
        if isinstance(data, dict) and set(data.keys()) == {'detail'}:
            message = str(data['detail'])
            details = None
        else:
            message = 'Invalid input'
            details = data
        body = {
            'message': message,
            'code': _code_for(exc, response.status_code),
            'statusCode': response.status_code,
        }
        if details:
            body['details'] = details
        response.data = {'error': body}
        return response

    view = context.get('view')
    logger.exception(f"Unhandled exception in {view.__class__.__name__ if view else 'view'}: {exc}")
    return Response(
        {'error': {'message': 'Internal server error', 'code': 'INTERNAL_ERROR', 'statusCode': 500}},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
