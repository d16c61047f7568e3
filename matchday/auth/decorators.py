"""Decorators for session-protected routes."""

from functools import wraps

from flask import g, jsonify, session


def login_required(f=None):
    """Answer 401 unless a participant is logged in.

    Usage:
    @login_required
    def protected_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if "user_id" not in session or not g.get("user"):
                return (
                    jsonify({"error": "unauthorized", "message": "Login required."}),
                    401,
                )
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
