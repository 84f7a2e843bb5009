# Domain Errors for the Gig Marketplace
# Services raise these; server.py renders them as {"message": ...} responses

from fastapi import status


class MarketplaceError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing or malformed input, out-of-range amount or rating."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ConflictError(MarketplaceError):
    """Duplicate one-to-one relation or a state that forbids the change."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ConflictError):
    def __init__(self, current: str, requested: str):
        super().__init__("Invalid status transition")
        self.current = current
        self.requested = requested


class AlreadyExistsError(ConflictError):
    pass


class BusinessNotFoundError(MarketplaceError):
    """A required business fact is absent (e.g. no reply to update)."""
    status_code = status.HTTP_400_BAD_REQUEST


class GatewayError(MarketplaceError):
    """Payment gateway failure. The message is never shown to callers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
