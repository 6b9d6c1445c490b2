"""DRF exception handler rendering a single error envelope.

Domain errors and DRF's own exceptions are both returned as
`{"error": {"code": ..., "message": ...}}`.
"""

import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import DomainError

logger = logging.getLogger("cartflow.api")

DRF_CODES = {
    exceptions.ValidationError: "VALIDATION_ERROR",
    exceptions.ParseError: "VALIDATION_ERROR",
    exceptions.NotAuthenticated: "UNAUTHORIZED",
    exceptions.AuthenticationFailed: "UNAUTHORIZED",
    exceptions.PermissionDenied: "FORBIDDEN",
    exceptions.NotFound: "NOT_FOUND",
    exceptions.MethodNotAllowed: "METHOD_NOT_ALLOWED",
    exceptions.Throttled: "THROTTLED",
}


def error_body(code: str, message: str, details=None) -> dict:
    body = {"error": {"code": code, "message": message}}
    if details is not None:
        body["error"]["details"] = details
    return body


def _message_from(data) -> str:
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        return "invalid request"
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.warning(
                "api.upstream_error",
                extra={"event": "api.upstream_error", "code": exc.code, "error": exc.message},
            )
        return Response(error_body(exc.code, exc.message), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, Http404):
        code = "NOT_FOUND"
    else:
        code = next((c for klass, c in DRF_CODES.items() if isinstance(exc, klass)), "ERROR")
    details = response.data if isinstance(exc, exceptions.ValidationError) else None
    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        code = "UNAUTHORIZED"
    response.data = error_body(code, _message_from(response.data), details)
    return response
