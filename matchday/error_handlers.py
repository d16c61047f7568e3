from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .errors import AppError, RetryExhaustedError

error_handlers_bp = Blueprint("error_handlers", __name__)


@error_handlers_bp.app_errorhandler(RetryExhaustedError)
def handle_retry_exhausted(error):
    """Handles atomic sections that gave up under contention."""
    current_app.logger.error(f"Retry Exhausted: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles application errors with their tagged code."""
    current_app.logger.warning(f"Application Error ({error.code}): {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return jsonify({"error": "not-found", "message": "No such endpoint."}), 404


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return jsonify({"error": "internal", "message": "Internal server error."}), 500


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """Handles CSRF errors, which usually mean the session expired."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return jsonify({"error": "invalid-input", "message": e.description}), 400
