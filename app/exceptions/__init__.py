"""Custom exceptions for the apparel back-office application."""

class BackofficeError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(BackofficeError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(BackofficeError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class PricingValidationError(BusinessLogicError):
    """Raised when cart or promotion input cannot be priced (negative price, NaN, ...)."""
    def __init__(self, field, message):
        self.field = field
        super().__init__(f"{field}: {message}", payload={'field': field})
