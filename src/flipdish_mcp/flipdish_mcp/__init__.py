"""FlipDish MCP bridge: menu search, basket and OTP checkout as MCP tools."""

__version__ = "0.1.0"

from .enums import ToolName, Widget  # noqa: E402
from .errors import (  # noqa: E402
    AuthenticationError,
    FlipDishError,
    NetworkError,
    OrderSubmissionError,
    RemoteError,
    ToolValidationError,
)
from .models import Basket, BasketItem, MenuItem, OptionSet, OptionSetItem  # noqa: E402
from .state import SessionStore  # noqa: E402

__all__ = [
    "AuthenticationError",
    "Basket",
    "BasketItem",
    "FlipDishError",
    "MenuItem",
    "NetworkError",
    "OptionSet",
    "OptionSetItem",
    "OrderSubmissionError",
    "RemoteError",
    "SessionStore",
    "ToolName",
    "ToolValidationError",
    "Widget",
    "__version__",
]
