"""
Error taxonomy for the URL shortener.

Every failure the services raise is a subclass of ShortenerError, so the API
layer can map it to an HTTP status with a single exception handler instead of
checking return values.
"""

from fastapi import status


class ShortenerError(Exception):
    """Base class for all domain errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "URL shortener error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShortenerError):
    """Malformed input: bad URL, bad alias, expiry not in the future"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"


class AliasTaken(ShortenerError):
    """Alias already in use (at check time or at insert time)"""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Alias is already taken"

    def __init__(self, alias: str = None):
        self.alias = alias
        message = f'Alias "{alias}" is already taken' if alias else None
        super().__init__(message)


class CodeConflict(ShortenerError):
    """Generated short code was claimed by a concurrent insert"""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Short code conflict, please retry"

    def __init__(self, short_code: str = None):
        self.short_code = short_code
        super().__init__()


class CodeGenerationExhausted(ShortenerError):
    """No unused short code found within the retry budget"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unable to generate unique short code. Please try again."

    def __init__(self, attempts: int = None):
        self.attempts = attempts
        message = (
            f"Could not generate unique short code after {attempts} attempts"
            if attempts else None
        )
        super().__init__(message)


class NotFound(ShortenerError):
    """Identifier does not resolve to a live record (missing or expired)"""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Short URL not found"


class PersistenceError(ShortenerError):
    """Underlying store unavailable or a write failed"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage is unavailable"
