"""
Core exception classes for the alarm reconciler.
"""


class ReconcilerError(Exception):
    """Base exception for all alarm reconciler errors."""
    
    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationError(ReconcilerError):
    """Raised when AWS authentication fails."""
    pass


class ConfigurationError(ReconcilerError):
    """Raised when configuration is invalid or missing."""
    pass


class ServiceError(ReconcilerError):
    """Raised when AWS service operations fail."""
    pass


class PlanNotFoundError(ReconcilerError):
    """Raised when the plan artifact is missing or cannot be read."""
    pass


class PlanFormatError(ReconcilerError):
    """Raised when a plan is too damaged to be applied at all."""
    pass


class TotalFailureError(ReconcilerError):
    """Raised when every attempted action in a non-empty plan failed."""

    def __init__(self, failed: int, details: str = None):
        super().__init__(f"All {failed} attempted actions failed", details)
        self.failed = failed
