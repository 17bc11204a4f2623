"""Application layer errors for FinOps."""


class ApplicationError(Exception):
    """Base exception for all application layer errors."""

    code = "APPLICATION_ERROR"

    def __init__(self, message: str) -> None:
        """
        Initialize application error.

        Args:
            message: Error message (must be PII-safe)
        """
        super().__init__(message)
        self.message = message


class ValidationError(ApplicationError):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.validation_message = message


class AuthenticationError(ApplicationError):
    """Raised when the caller cannot be authenticated.

    ``reason`` is the machine tag also written to the login audit.
    """

    code = "AUTHENTICATION_FAILED"

    def __init__(self, reason: str, message: str = "Invalid credentials") -> None:
        super().__init__(message)
        self.reason = reason


class MFARequiredError(AuthenticationError):
    """Raised when a token that still needs a TOTP challenge is used."""

    code = "MFA_REQUIRED"

    def __init__(self) -> None:
        super().__init__("mfa_required", "Multi-factor verification required")


class AuthorizationError(ApplicationError):
    """Raised when an authenticated caller lacks a capability."""

    code = "FORBIDDEN"

    def __init__(self, capability: str) -> None:
        super().__init__(f"Operation requires the '{capability}' capability")
        self.capability = capability


class RateLimitExceeded(ApplicationError):
    """Raised when too many failed sign-ins happened inside the window."""

    code = "RATE_LIMITED"

    def __init__(self, resource: str, retry_after: int) -> None:
        super().__init__("Too many attempts. Try again later")
        self.resource = resource
        self.retry_after = retry_after


class NotFoundError(ApplicationError):
    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} '{entity_id}' not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(ApplicationError):
    code = "CONFLICT"


class FileRejectedError(ApplicationError):
    """Raised when an upload fails validation before parsing."""

    code = "FILE_REJECTED"

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class PersistenceError(ApplicationError):
    """Raised when the storage backend fails; the unit of work was rolled back."""

    code = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, message: str = "Could not save changes") -> None:
        super().__init__(message)
        self.operation = operation
