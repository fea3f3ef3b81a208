"""Custom exceptions for the Retail POS application."""

class PosError(Exception):
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

class BusinessLogicError(PosError):
    """Exception raised for validation and business rule violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(BusinessLogicError):
    """Raised when a cart line or checkout asks for more units than are on hand."""
    def __init__(self, product_name, required, available):
        message = f"Insufficient stock for {product_name}: requested {required}, available {available}"
        super().__init__(
            message,
            status_code=409,
            payload={'requested': required, 'available': available}
        )
        self.product_name = product_name
        self.required = required
        self.available = available

class UnauthorizedError(PosError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Insufficient permissions"):
        super().__init__(message, 403)

class AuthenticationError(PosError):
    """Raised when there is no valid login session."""
    def __init__(self, message="Login required"):
        super().__init__(message, 401)
