"""Error taxonomy for the FlipDish bridge.

Everything raised by the executor, gateway and widget resolver derives from
FlipDishError, so the protocol boundary can report a readable message.
"""

# The wrapper API reports a stale chatId only through this text in the
# error body. Kept here so the match can be swapped for an error code later.
SESSION_EXPIRED_MARKER = "Call context not found"


class FlipDishError(Exception):
    """Base class for bridge errors."""


class ToolValidationError(FlipDishError):
    """Bad, missing or out-of-range tool arguments, or an unknown tool."""


class RemoteError(FlipDishError):
    """Non-2xx response from the FlipDish wrapper API."""

    def __init__(self, status: int | None, body: str):
        self.status = status
        self.body = body
        super().__init__(f"API Error ({status}): {body}")


class NetworkError(RemoteError):
    """The request never produced an HTTP response."""

    def __init__(self, reason: str):
        super().__init__(None, reason)


class AuthenticationError(FlipDishError):
    """OTP send or verification was refused by the backend."""


class OrderSubmissionError(FlipDishError):
    """The backend answered submitOrder with success=false."""


class OptionChainError(FlipDishError):
    """An option-set chain did not terminate within the iteration cap."""


class UnknownResourceError(FlipDishError):
    """A widget resource URI outside the fixed set was requested."""


class WidgetNotFoundError(FlipDishError):
    """Built widget markup is missing from the assets directory."""


def is_session_expired(error: BaseException) -> bool:
    """Return True if the error means the backend no longer knows our chatId."""
    return SESSION_EXPIRED_MARKER in str(error)
