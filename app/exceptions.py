"""
Domain Exceptions
Custom exception classes for standardized error handling
"""


class IssueDeskError(Exception):
    """Base exception for all application errors"""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message=None, details=None):
        self.message = message or self.__class__.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        return {
            'error': self.__class__.__name__,
            'message': self.message,
            'details': self.details
        }


class InvalidInputError(IssueDeskError):
    """Raised when a title, message, status or level is empty or malformed"""
    status_code = 400
    message = "Invalid input"


class AuthenticationError(IssueDeskError):
    """Raised when no authenticated session is present"""
    status_code = 401
    message = "Authentication required"


class AuthorizationError(IssueDeskError):
    """Raised when user lacks permission"""
    status_code = 403
    message = "Admin access required"


class NotFoundError(IssueDeskError):
    """Raised when a resource is not found"""
    status_code = 404
    message = "Resource not found"


class StoreUnavailableError(IssueDeskError):
    """Raised when the backing database cannot be reached"""
    status_code = 503
    message = "Issue store unavailable"


class ConfigurationError(IssueDeskError):
    """Raised when configuration is invalid"""
    status_code = 500
    message = "Configuration error"
