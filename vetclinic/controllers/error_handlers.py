"""
Application-wide error handlers.

Every error leaves the API in the same envelope:
``{"success": false, "message": ..., "error": code[, "errors": {...}]}``.
"""

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from vetclinic.core.api_utils import error_response
from vetclinic.core.exceptions import ClinicError

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "permission_denied",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    429: "rate_limited",
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ClinicError)
    def handle_clinic_error(error: ClinicError):
        logger.info(
            f"{error.code}: {error.message}",
            extra={
                "context": {
                    "path": request.path,
                    "method": request.method,
                    "status_code": error.status_code,
                }
            },
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        status = error.code or 500
        return error_response(
            error.description or error.name,
            _HTTP_ERROR_CODES.get(status, "http_error"),
            status,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(
            "Unhandled error",
            extra={
                "context": {
                    "path": request.path,
                    "method": request.method,
                    "error_type": type(error).__name__,
                }
            },
            exc_info=True,
        )
        return error_response("An unexpected error occurred", "server_error", 500)
