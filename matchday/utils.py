"""Utility functions for the application."""

from flask import jsonify

from .core.types import APIResponse


def api_response(data=None, message="", status_code=200):
    """Wrap a service result in the standard JSON envelope."""
    body = APIResponse(success=True, message=message, data=data)
    return jsonify(body), status_code


def form_error_response(form):
    """Answer 400 with the field errors of an invalid form."""
    return (
        jsonify(
            {
                "error": "invalid-input",
                "message": "Invalid form data.",
                "fields": form.errors,
            }
        ),
        400,
    )
