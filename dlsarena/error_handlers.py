"""JSON error handlers for the API."""

from flask import Blueprint, current_app, jsonify

from .errors import AppError

error_handlers_bp = Blueprint("error_handlers", __name__)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Render classified application errors as a JSON envelope."""
    if error.status_code >= 500:
        current_app.logger.error(f"Application Error: {error.message}")
    else:
        current_app.logger.warning(
            f"{type(error).__name__} ({error.status_code}): {error.message}"
        )
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return jsonify(
        {"success": False, "message": "Resource not found.", "code": "not_found"}
    ), 404


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests made with an unsupported HTTP method."""
    return jsonify(
        {
            "success": False,
            "message": "Method not allowed.",
            "code": "method_not_allowed",
        }
    ), 405


@error_handlers_bp.app_errorhandler(413)
def handle_413(e):
    """Handles uploads larger than MAX_CONTENT_LENGTH."""
    return jsonify(
        {
            "success": False,
            "message": "The proof must not exceed 5 MB.",
            "code": "invalid_attachment",
        }
    ), 413


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return jsonify(
        {
            "success": False,
            "message": "An unexpected error occurred. Please try again later.",
            "code": "server_error",
        }
    ), 500
