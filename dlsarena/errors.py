"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "app_error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error into the JSON error envelope."""
        return {"success": False, "message": self.message, "code": self.code}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "validation_error"

    def __init__(self, message="Validation failed.", field=None):
        """Initialize the error."""
        super().__init__(message, 400)
        self.field = field

    def to_dict(self):
        """Serialize the error, naming the offending field when known."""
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class InvalidAttachmentError(ValidationError):
    """Raised when a proof attachment fails the size or type policy."""

    code = "invalid_attachment"

    def __init__(self, message="Invalid attachment.", field="proof"):
        """Initialize the error."""
        super().__init__(message, field=field)


class UnauthorizedError(AppError):
    """Raised when a request carries no valid credentials."""

    code = "unauthorized"

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class ForbiddenError(AppError):
    """Raised when the user may not perform the requested action."""

    code = "forbidden"

    def __init__(self, message="You are not allowed to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not_found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class AlreadyResolvedError(AppError):
    """Raised when a dispute has already left the pending state."""

    code = "already_resolved"

    def __init__(self, message="This dispute has already been resolved."):
        """Initialize the error."""
        super().__init__(message, 409)


class AlreadyCollectedError(AppError):
    """Raised when a reward has already been collected."""

    code = "already_collected"

    def __init__(self, message="This reward has already been collected."):
        """Initialize the error."""
        super().__init__(message, 409)


class ServerError(AppError):
    """Raised client-side when the API answers with a 5xx status."""

    code = "server_error"

    def __init__(self, message="An unexpected server error occurred.", status_code=500):
        """Initialize the error."""
        super().__init__(message, status_code)


class NetworkError(AppError):
    """Raised client-side when a request could not complete."""

    code = "network_error"

    def __init__(self, message="The server could not be reached. Please try again."):
        """Initialize the error."""
        super().__init__(message, 0)
