"""Tool execution: the session/auth state machine behind every tool call.

Flow per call: look up the tool and validate its arguments, make sure a guest
FlipDish session exists, dispatch to the handler, and shape the result
(text, structured data and the widget the runtime should render).

Basket operations always run on the guest session because the wrapper's
updateBasket only accepts guest sessions. The OTP token is tracked on the
side and only consulted by checkout and the account tools.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from .client import FlipDishClient
from .enums import ToolName, Widget
from .errors import (
    AuthenticationError,
    FlipDishError,
    OrderSubmissionError,
    ToolValidationError,
    is_session_expired,
)
from .models import Basket, MenuItem
from .state import SessionStore
from .tools import (
    AddToBasketArgs,
    RemoveFromBasketArgs,
    SearchMenuArgs,
    SendOtpArgs,
    SubmitOrderArgs,
    ToolArgs,
    VerifyOtpArgs,
    get_tool,
)


@dataclass
class ToolResult:
    """What a tool call hands back to the protocol layer."""

    text: str
    structured: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None


def _output_meta(widget: Widget, invoking: str | None = None, invoked: str | None = None) -> dict:
    meta: dict[str, Any] = {"openai/outputTemplate": widget.value}
    if invoking:
        meta["openai/toolInvocation/invoking"] = invoking
    if invoked:
        meta["openai/toolInvocation/invoked"] = invoked
    return meta


# Keys the wrapper has used for the open/closed flag
_OPEN_FLAG_KEYS = ("isOpen", "open", "isRestaurantOpen", "isOpenNow")


def _status_text(status: Any) -> str:
    if isinstance(status, dict):
        for key in _OPEN_FLAG_KEYS:
            if isinstance(status.get(key), bool):
                return "Restaurant is open" if status[key] else "Restaurant is closed"
    return "Restaurant status retrieved"


Handler = Callable[[str, str | None, ToolArgs], Awaitable[ToolResult]]


class ToolExecutor:
    """Runs tools against FlipDish using one SessionStore.

    Args:
        client: Backend gateway.
        store: Session context owned by this executor.
    """

    def __init__(self, client: FlipDishClient, store: SessionStore):
        self.client = client
        self.store = store
        self._handlers: dict[ToolName, Handler] = {
            ToolName.SEARCH_MENU: self._search_menu,
            ToolName.ADD_TO_BASKET: self._add_to_basket,
            ToolName.VIEW_BASKET: self._view_basket,
            ToolName.REMOVE_FROM_BASKET: self._remove_from_basket,
            ToolName.CLEAR_BASKET: self._clear_basket,
            ToolName.SUBMIT_ORDER: self._submit_order,
            ToolName.SEND_OTP: self._send_otp,
            ToolName.VERIFY_OTP: self._verify_otp,
            ToolName.GET_RESTAURANT_STATUS: self._get_restaurant_status,
            ToolName.GET_PAYMENT_ACCOUNTS: self._get_payment_accounts,
            ToolName.LOGOUT: self._logout,
        }

    # ---------------------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------------------

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Run a tool, refreshing the FlipDish session once if it has expired."""
        try:
            return await self._execute_once(name, arguments)
        except FlipDishError as e:
            # Expiry can arrive as an HTTP error or inside a success=false payload
            if not is_session_expired(e):
                raise
            logger.info("Session expired ({}), refreshing session...", e)
            self.store.set_session_id(None)
            return await self._execute_once(name, arguments)

    async def ensure_session(self) -> str:
        """Return the current chatId, creating a guest session if there is none."""
        chat_id = self.store.session_id
        if chat_id:
            return chat_id

        logger.info("Initializing new FlipDish session (guest mode)")
        session = await self.client.create_session()
        self.store.set_session_id(session.chat_id)
        logger.info("Guest session created: {}", session.chat_id)
        return session.chat_id

    async def _execute_once(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        tool = get_tool(name)
        args = tool.parse(arguments)

        chat_id = await self.ensure_session()
        token = self.store.auth_token
        logger.info("Executing {} (chat_id={}, authenticated={})", tool.name, chat_id, bool(token))
        logger.debug("Arguments: {}", arguments)

        return await self._handlers[tool.name](chat_id, token, args)

    # ---------------------------------------------------------------------
    # Menu
    # ---------------------------------------------------------------------

    async def _search_menu(self, chat_id: str, token: str | None, args: SearchMenuArgs) -> ToolResult:
        items = await self.client.search_menu(chat_id, args.query, token)
        logger.info("Search for {!r} returned {} items", args.query, len(items))

        # Later add_to_basket calls are validated against this
        self.store.set_search_results(items)

        return ToolResult(
            text=f"Found {len(items)} menu items",
            structured={"items": [item.to_wire() for item in items]},
            meta=_output_meta(
                Widget.MENU_CAROUSEL,
                invoking="Searching menu...",
                invoked=f"Found {len(items)} items",
            ),
        )

    def _validate_menu_item(self, menu_item_id: int, option_ids: list[int]) -> None:
        """Check an addition against the last search, if there was one."""
        results = self.store.search_results
        if not results:
            return

        item = self.store.find_search_result(menu_item_id)
        if item is None:
            valid_ids = ", ".join(str(i.menu_item_id) for i in results)
            raise ToolValidationError(f"Invalid menuItemId. Valid IDs: {valid_ids}")

        if option_ids:
            self._validate_options(item, option_ids)

    @staticmethod
    def _validate_options(item: MenuItem, option_ids: list[int]) -> None:
        groups = item.option_sets()
        if not groups:
            # Option data missing from the search payload; let the backend decide
            return

        known: set[int] = set()
        for group in groups:
            known |= group.option_ids
        unknown = [i for i in option_ids if i not in known]
        if unknown:
            raise ToolValidationError(
                f"Invalid option IDs for {item.name}: {', '.join(map(str, unknown))}. "
                f"Valid option IDs: {', '.join(map(str, sorted(known)))}"
            )

        for group in groups:
            chosen = [i for i in option_ids if i in group.option_ids]
            if group.is_single_select and len(chosen) > 1:
                raise ToolValidationError(
                    f"Only one option may be chosen for {item.name} "
                    f"({group.options_rules}), got {len(chosen)}"
                )

    # ---------------------------------------------------------------------
    # Basket
    # ---------------------------------------------------------------------

    async def _add_to_basket(self, chat_id: str, token: str | None, args: AddToBasketArgs) -> ToolResult:
        option_ids = args.menu_item_option_set_items or []
        self._validate_menu_item(args.menu_item_id, option_ids)

        line: dict[str, Any] = {"menuItemId": args.menu_item_id, "quantity": args.quantity}
        if args.menu_item_option_set_items is not None:
            line["menuItemOptionSetItems"] = args.menu_item_option_set_items
        await self.client.update_basket(chat_id, {"addMenuItems": [line]}, token)

        basket = await self.client.get_basket(chat_id, token)
        # The backend may represent the line differently than requested
        added = basket.find(args.menu_item_id)
        item_name = added.name if added and added.name else "item"

        return ToolResult(
            text=f"Added {args.quantity}x {item_name} to basket",
            structured={
                "basket": basket.to_wire(),
                "action": "add",
                "menuItemId": args.menu_item_id,
                "quantity": args.quantity,
                "itemName": item_name,
            },
        )

    async def _view_basket(self, chat_id: str, token: str | None, args: ToolArgs) -> ToolResult:
        basket = await self.client.get_basket(chat_id, token)
        count = len(basket.basket_menu_items)

        return ToolResult(
            text=f"Basket contains {count} items (€{basket.total_price:.2f})",
            structured={"basket": basket.to_wire()},
            meta=_output_meta(
                Widget.BASKET,
                invoking="Loading basket...",
                invoked=f"{count} items in basket",
            ),
        )

    async def _remove_from_basket(
        self, chat_id: str, token: str | None, args: RemoveFromBasketArgs
    ) -> ToolResult:
        await self.client.update_basket(
            chat_id,
            {"removeMenuItems": [{"menuItemId": args.menu_item_id, "quantity": args.quantity}]},
            token,
        )
        basket = await self.client.get_basket(chat_id, token)

        return ToolResult(
            text=f"Removed {args.quantity}x item from basket",
            structured={"basket": basket.to_wire(), "action": "remove"},
            meta=_output_meta(Widget.BASKET),
        )

    async def _clear_basket(self, chat_id: str, token: str | None, args: ToolArgs) -> ToolResult:
        await self.client.clear_basket(chat_id, token)
        # Clearing is idempotent, no refetch needed
        return ToolResult(
            text="Basket cleared",
            structured={"basket": Basket.empty().to_wire()},
        )

    # ---------------------------------------------------------------------
    # Checkout
    # ---------------------------------------------------------------------

    @staticmethod
    def _authentication_required() -> ToolResult:
        meta = _output_meta(
            Widget.LOGIN,
            invoking="Authentication required...",
            invoked="Please login to continue",
        )
        meta["openai/widgetAccessible"] = True
        return ToolResult(
            text="Please authenticate to continue.",
            structured={
                "error": "authentication_required",
                "message": "Authentication widget opened. Please log in using the form.",
            },
            meta=meta,
        )

    async def _submit_order(self, chat_id: str, token: str | None, args: SubmitOrderArgs) -> ToolResult:
        if not token:
            logger.warning("No auth token, sending the login widget instead of submitting")
            return self._authentication_required()

        result = await self.client.submit_order(chat_id, token, args.payment_account_id)
        if not result.success:
            logger.error("Order submission failed: {}", result.error)
            raise OrderSubmissionError(result.error or "Order submission failed")

        logger.info("Order placed: {}", result.order_id)
        return ToolResult(
            text=result.lead_time_prompt or f"Order placed! Order ID: {result.order_id}",
            structured={
                "success": True,
                "orderId": result.order_id,
                "leadTimePrompt": result.lead_time_prompt,
            },
        )

    async def _get_payment_accounts(self, chat_id: str, token: str | None, args: ToolArgs) -> ToolResult:
        if not token:
            return self._authentication_required()

        result = await self.client.get_payment_accounts(token)
        accounts = result.get("accounts") or []
        return ToolResult(
            text=f"Found {len(accounts)} payment accounts",
            structured={"accounts": accounts},
        )

    async def _get_restaurant_status(self, chat_id: str, token: str | None, args: ToolArgs) -> ToolResult:
        status = await self.client.get_restaurant_status()
        return ToolResult(text=_status_text(status), structured={"status": status})

    # ---------------------------------------------------------------------
    # Authentication
    # ---------------------------------------------------------------------

    async def _send_otp(self, chat_id: str, token: str | None, args: SendOtpArgs) -> ToolResult:
        result = await self.client.send_otp(args.phone_number)
        if not result.success:
            raise AuthenticationError(result.error or "Failed to send OTP")

        return ToolResult(
            text=f"OTP sent to {args.phone_number}",
            structured={"otpSent": True, "phoneNumber": args.phone_number},
            meta=_output_meta(Widget.LOGIN),
        )

    async def _verify_otp(self, chat_id: str, token: str | None, args: VerifyOtpArgs) -> ToolResult:
        result = await self.client.verify_otp(args.phone_number, args.code, chat_id)
        if not result.success or not result.token:
            raise AuthenticationError(result.error or "OTP verification failed")

        self.store.set_auth(result.token, args.phone_number)
        logger.info("Authenticated {}", args.phone_number)

        return ToolResult(
            text="Authentication successful!",
            structured={"authenticated": True, "phoneNumber": args.phone_number},
            meta=_output_meta(Widget.LOGIN),
        )

    async def _logout(self, chat_id: str, token: str | None, args: ToolArgs) -> ToolResult:
        self.store.clear_auth()
        return ToolResult(
            text="Logged out",
            structured={"authenticated": False},
            meta=_output_meta(Widget.LOGIN),
        )
