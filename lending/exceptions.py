# lending/exceptions.py
import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


def _first_message(detail):
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if field in ("non_field_errors", "detail"):
                return message
            return f"{field}: {message}"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every failure as {"error": "..."}; validation failures also carry
    the per-field "details". Anything DRF does not know about becomes a 500.
    """
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {
                "error": _first_message(exc.detail),
                "details": exc.detail,
            }
        else:
            response.data = {"error": _first_message(response.data)}
        return response

    view = context.get("view")
    logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
    set_rollback()
    return Response(
        {"error": f"Server error: {exc}"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
