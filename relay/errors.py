"""Failure taxonomy of the relay.

Every error is recovered per request; none of them is fatal to the process.
"""


class RelayError(Exception):
    """Base class for relay failures."""


class VerificationError(RelayError):
    """Webhook handshake was attempted with a wrong mode or token."""


class BackendError(RelayError):
    """The generative or intent backend was unreachable or answered with an error."""

    def __init__(self, backend: str, message: str, status_code: int | None = None):
        self.backend = backend
        self.status_code = status_code
        super().__init__(f"{backend} backend error: {message}")


class DeliveryError(RelayError):
    """A send-message call to the messaging platform failed."""

    def __init__(self, recipient: str, message: str, status_code: int | None = None):
        self.recipient = recipient
        self.status_code = status_code
        super().__init__(f"Delivery to {recipient} failed: {message}")


class MalformedPayloadError(RelayError):
    """Webhook body carries no message or no usable text."""
