class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict | list | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(AppError):
    """Raised when a request references records that do not exist or ids are malformed."""
    def __init__(self, message: str, details: dict | list | None = None):
        super().__init__(message, status_code=400, details=details)


class ScheduleConflictError(AppError):
    """Raised when a venue, examiner, lecturer or student would be double-booked."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class InvalidStateError(AppError):
    """Raised when an operation is not allowed in the record's current state."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class EmptyResultError(AppError):
    """Raised when a lookup by participant or owner has nothing to return."""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class AuthenticationError(AppError):
    """Raised for missing credentials or a role that may not perform the action."""
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message, status_code=401)


class SchedulerError(AppError):
    """Raised when the slot search cannot run or finds nothing suitable."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)
