class RegistryError(Exception):
    """Base exception for all registry operation failures."""

    code = "registry_error"


class ValidationError(RegistryError):
    """Raised when input is malformed or missing, before anything is written."""

    code = "validation_error"


class NotFoundError(RegistryError):
    """Raised when a referenced report, request or search does not exist."""

    code = "not_found"


class UnauthorizedError(RegistryError):
    """Raised when the caller does not own the entity it tries to act on."""

    code = "unauthorized"


class ConflictError(RegistryError):
    """Raised when an access request already exists for a report and requester."""

    code = "conflict"

    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status


class InvalidOperationError(RegistryError):
    """Raised on an illegal state transition or a request for one's own report."""

    code = "invalid_operation"

    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status


class OperationFailedError(RegistryError):
    """Generic failure reported in place of storage-level errors."""

    code = "operation_failed"
