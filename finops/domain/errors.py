"""Domain-specific exceptions and error types."""


class DomainError(Exception):
    """Base class for all domain-related errors.

    Domain errors represent business rule violations or invalid operations
    within the domain layer. They are translated at the application boundary.
    """

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidValueObjectError(DomainError):
    """Raised when a value object cannot be created due to invalid input."""

    def __init__(self, value_object_type: str, validation_error: str):
        message = f"Invalid {value_object_type}: {validation_error}"
        super().__init__(message, "INVALID_VALUE_OBJECT")
        self.value_object_type = value_object_type
        self.validation_error = validation_error


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule_name: str, violation_details: str):
        message = f"Business rule '{rule_name}' violated: {violation_details}"
        super().__init__(message, "BUSINESS_RULE_VIOLATION")
        self.rule_name = rule_name
        self.violation_details = violation_details
