"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error for a JSON response."""
        return {"error": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "invalid-input"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class InvalidWinnerError(ValidationError):
    """Raised when a reported winner is not one of the match's two teams."""

    code = "invalid-winner"

    def __init__(self, message="Winner must be one of the match's teams."):
        """Initialize the error."""
        super().__init__(message)


class InsufficientParticipantsError(AppError):
    """Raised when a bracket is requested for fewer than two teams."""

    code = "insufficient-participants"

    def __init__(self, message="At least two teams are required."):
        """Initialize the error."""
        super().__init__(message, 400)


class ForbiddenError(AppError):
    """Raised when the caller is not a party to the resource."""

    code = "forbidden"

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not-found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when a write contradicts state that is already committed."""

    code = "conflict"

    def __init__(self, message="Resource is in a conflicting state."):
        """Initialize the error."""
        super().__init__(message, 409)


class RetryExhaustedError(AppError):
    """Raised when an atomic section could not commit under contention."""

    code = "retry-exhausted"

    def __init__(self, message="Too much contention, please try again."):
        """Initialize the error."""
        super().__init__(message, 503)
