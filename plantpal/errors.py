"""
Error taxonomy for the presence layer.

Handshake failures reject the connection, per-event failures are returned
to the client as ``{"error": true, "message": ...}`` acknowledgments, and
disconnect/push failures are only logged.
"""


class PresenceError(Exception):
    """Base class for presence registry and realtime gateway errors."""


class UninitializedGatewayError(PresenceError):
    def __init__(self, message: str = "Socket.IO has not been initialized."):
        super().__init__(message)


class AuthenticationError(PresenceError):
    """Missing, malformed, invalid or expired credential."""


class UserNotFoundError(PresenceError):
    def __init__(self, message: str = "User does not exist"):
        super().__init__(message)


class StoreOperationError(PresenceError):
    """The identity store failed to read or write a presence record."""


class DeliveryError(PresenceError):
    """A push could not be addressed to the target user."""
