import logging
import math

from django.conf import settings
from django.http import Http404
from django.utils import timezone
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


ERROR_CODES = [
    (exceptions.Throttled, 'RATE_LIMIT'),
    (exceptions.NotAuthenticated, 'AUTHENTICATION_ERROR'),
    (exceptions.AuthenticationFailed, 'AUTHENTICATION_ERROR'),
    (exceptions.PermissionDenied, 'AUTHORIZATION_ERROR'),
    (exceptions.NotFound, 'NOT_FOUND'),
    (Http404, 'NOT_FOUND'),
    (exceptions.ValidationError, 'VALIDATION_ERROR'),
    (exceptions.ParseError, 'VALIDATION_ERROR'),
    (Conflict, 'CONFLICT'),
]


def _error(code, message, http_status, details=None):
    body = {'code': code, 'message': message, 'timestamp': timezone.now().isoformat()}
    if details is not None:
        body['details'] = details
    return Response({'ok': False, 'error': body}, status=http_status)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('unhandled error in %s', type(view).__name__ if view else 'view', exc_info=exc)
        return _error('INTERNAL_ERROR', 'Internal server error', 500, str(exc) if settings.DEBUG else None)

    code = next((c for kind, c in ERROR_CODES if isinstance(exc, kind)), 'API_ERROR')
    details = None
    if isinstance(resp.data, dict) and 'detail' in resp.data:
        message = str(resp.data['detail'])
    elif isinstance(exc, exceptions.ValidationError):
        message = 'Invalid input'
        details = resp.data
    else:
        message = str(resp.data)
    if isinstance(exc, exceptions.Throttled) and exc.wait is not None:
        details = {'retryAfter': math.ceil(exc.wait)}
    out = _error(code, message, resp.status_code, details)
    # keep WWW-Authenticate / Retry-After from DRF
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            out[header] = resp[header]
    return out
