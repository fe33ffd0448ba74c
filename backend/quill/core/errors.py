"""
Custom exception classes for better error handling.

These exceptions are used throughout the application for consistent
error handling and response formatting.
"""


class ValidationError(Exception):
    """Raised when input validation fails (400)."""
    pass


class ConflictError(Exception):
    """Raised when a username or email is already registered (400)."""
    pass


class InvalidCredentialsError(Exception):
    """
    Raised when login fails (401).

    Unknown email and wrong password both raise this with the same message.
    """

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AuthenticationError(Exception):
    """Raised when a request carries no usable session (401)."""
    pass


class InvalidSessionError(AuthenticationError):
    """Raised when a session token is malformed, tampered with or unknown."""

    def __init__(self, message: str = "Invalid session"):
        super().__init__(message)


class SessionExpiredError(AuthenticationError):
    """Raised when a session token is past its expiry."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class UnauthorizedError(Exception):
    """Raised when an authenticated user does not own the resource (403)."""
    pass


class ResourceNotFoundError(Exception):
    """Raised when a blog or comment doesn't exist in database."""
    pass


class OperationTimeoutError(Exception):
    """Raised when password hashing or a store call exceeds its time bound."""
    pass
