"""
DRF exception handler producing the API's error envelope.

    {"success": false, "message": "...", "errors": {...}}

Unhandled exceptions are logged and answered with an opaque 500 so that
internal messages never reach the client.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .results import UNEXPECTED_ERROR_MESSAGE

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}"
        )
        return Response(
            {'success': False, 'message': UNEXPECTED_ERROR_MESSAGE},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = response.data
    if isinstance(data, dict) and 'detail' in data and len(data) == 1:
        response.data = {'success': False, 'message': str(data['detail'])}
    else:
        response.data = {
            'success': False,
            'message': 'Validation Error',
            'errors': data,
        }
    return response
