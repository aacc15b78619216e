"""Catalog of tools exposed to the assistant runtime.

Each tool has a pydantic argument model. The model doubles as the JSON input
schema advertised over MCP and as the parser the executor runs before
touching the backend.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError
from pydantic.alias_generators import to_camel

from .enums import ToolName, Widget
from .errors import ToolValidationError

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class ToolArgs(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class NoArgs(ToolArgs):
    pass


class SearchMenuArgs(ToolArgs):
    query: NonBlankStr = Field(description="Search query (e.g., 'burger', 'pizza')")


class AddToBasketArgs(ToolArgs):
    menu_item_id: int = Field(description="The menu item ID from search results")
    quantity: int = Field(default=1, ge=1, description="Quantity to add (default: 1)")
    menu_item_option_set_items: list[int] | None = Field(
        default=None, description="List of selected option IDs (optional)"
    )


class RemoveFromBasketArgs(ToolArgs):
    menu_item_id: int = Field(description="The menu item ID to remove")
    quantity: int = Field(default=1, ge=1, description="Quantity to remove (default: 1)")


class SubmitOrderArgs(ToolArgs):
    payment_account_id: int | None = Field(
        default=None, description="Payment account ID (optional)"
    )


class SendOtpArgs(ToolArgs):
    phone_number: NonBlankStr = Field(description="Phone number to send OTP to")


class VerifyOtpArgs(ToolArgs):
    phone_number: NonBlankStr = Field(description="Phone number used for OTP")
    code: NonBlankStr = Field(description="OTP code received")


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """Immutable catalog entry for one tool."""

    model_config = ConfigDict(frozen=True)

    name: ToolName
    description: str
    args_model: type[ToolArgs] = NoArgs
    # Static output template; tools without one pick a widget per call
    widget: Widget | None = None

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)

    def parse(self, arguments: dict[str, Any] | None) -> ToolArgs:
        """Validate raw call arguments into the tool's argument model."""
        try:
            return self.args_model.model_validate(arguments or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolValidationError(f"Invalid arguments for {self.name}: {problems}") from e


TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name=ToolName.SEARCH_MENU,
        description="Search the FlipDish menu for food items",
        args_model=SearchMenuArgs,
        widget=Widget.MENU_CAROUSEL,
    ),
    ToolDefinition(
        name=ToolName.ADD_TO_BASKET,
        description="Add a menu item to the basket",
        args_model=AddToBasketArgs,
    ),
    ToolDefinition(
        name=ToolName.VIEW_BASKET,
        description="View the current basket contents",
        widget=Widget.BASKET,
    ),
    ToolDefinition(
        name=ToolName.REMOVE_FROM_BASKET,
        description="Remove an item from the basket",
        args_model=RemoveFromBasketArgs,
        widget=Widget.BASKET,
    ),
    ToolDefinition(
        name=ToolName.CLEAR_BASKET,
        description="Clear all items from the basket",
        widget=Widget.BASKET,
    ),
    ToolDefinition(
        name=ToolName.SUBMIT_ORDER,
        description="Submit the order (requires authentication)",
        args_model=SubmitOrderArgs,
    ),
    ToolDefinition(
        name=ToolName.SEND_OTP,
        description="Send OTP to phone number for authentication (widget use only)",
        args_model=SendOtpArgs,
        widget=Widget.LOGIN,
    ),
    ToolDefinition(
        name=ToolName.VERIFY_OTP,
        description="Verify OTP code for authentication (widget use only)",
        args_model=VerifyOtpArgs,
        widget=Widget.LOGIN,
    ),
    ToolDefinition(
        name=ToolName.GET_RESTAURANT_STATUS,
        description="Check whether the restaurant is currently accepting orders",
    ),
    ToolDefinition(
        name=ToolName.GET_PAYMENT_ACCOUNTS,
        description="List saved payment accounts (requires authentication)",
    ),
    ToolDefinition(
        name=ToolName.LOGOUT,
        description="Forget the verified phone number and auth token",
        widget=Widget.LOGIN,
    ),
)

TOOL_REGISTRY: dict[str, ToolDefinition] = {tool.name.value: tool for tool in TOOLS}


def get_tool(name: str) -> ToolDefinition:
    """Look up a tool by name.

    Raises:
        ToolValidationError: for names outside the catalog.
    """
    try:
        return TOOL_REGISTRY[name]
    except KeyError:
        raise ToolValidationError(f"Unknown tool: {name}") from None
