"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    retryable = False

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class SlotConflictException(AppException):
    """The requested slot is already held by a live appointment."""

    def __init__(self, message: str = "This slot is already booked. Please select another time."):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidTransitionException(AppException):
    """The requested status change is not allowed from the current status."""

    def __init__(self, current: str, target: str, message: str | None = None):
        """Initialize with 400 status code."""
        self.current = current
        self.target = target
        super().__init__(
            message or f"Cannot move appointment from '{current}' to '{target}'",
            status_code=400,
        )


class DoctorUnavailableException(AppException):
    """Doctor is not accepting bookings."""

    def __init__(self, message: str = "Doctor is not accepting appointments"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class StoreUnavailableException(AppException):
    """Persistence layer timed out or could not be reached."""

    retryable = True

    def __init__(self, message: str = "Appointment store is temporarily unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)
