"""FlipDish wrapper API client.

Thin async façade over the wrapper server: every operation is a single POST
of `{"action": ..., "args": [...]}` to `/api`, except authenticated basket
updates which have their own endpoint. No retries and no caching here; the
executor owns session handling.
"""

from typing import Any, Self

import httpx
from loguru import logger

from .config import Settings
from .errors import NetworkError, RemoteError
from .models import Basket, MenuItem, OrderResult, OtpResult, SessionInfo

DEFAULT_SERVER_URL = "https://flip-dish-wrapper.vercel.app"


class FlipDishClient:
    """Async client for the FlipDish wrapper server.

    Args:
        app_id: FlipDish app id sent with session, order and OTP calls.
        store_id: Store the menu and basket belong to.
        bearer_token: Server credential, used when a call has no user token.
        server_url: Base URL of the wrapper server.
        http_client: Optional pre-built httpx client (tests inject a
            MockTransport here). When omitted the client owns its own.
    """

    def __init__(
        self,
        app_id: str,
        store_id: int,
        bearer_token: str | None = None,
        server_url: str = DEFAULT_SERVER_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.app_id = app_id
        self.store_id = store_id
        self.bearer_token = bearer_token or None
        self.server_url = server_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            app_id=settings.flipdish_app_id,
            store_id=settings.flipdish_store_id,
            bearer_token=settings.flipdish_bearer_token,
            server_url=settings.flipdish_server_url,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -- transport -----------------------------------------------------------

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        credential = token or self.bearer_token
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        return headers

    async def _post(self, path: str, payload: dict, token: str | None) -> Any:
        url = f"{self.server_url}{path}"
        try:
            response = await self._http.post(
                url, json=payload, headers=self._headers(token)
            )
        except httpx.RequestError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.warning(
                "FlipDish {} failed with {}: {}", path, response.status_code, response.text
            )
            raise RemoteError(response.status_code, response.text)
        return response.json()

    async def _call(self, action: str, args: list | None = None, token: str | None = None) -> Any:
        logger.debug("API request: {} args={}", action, args)
        return await self._post("/api", {"action": action, "args": args or []}, token)

    # -- session -------------------------------------------------------------

    async def create_session(self, token: str | None = None) -> SessionInfo:
        """Create a backend ordering session. Without a token it is a guest session."""
        result = await self._call(
            "createSession",
            [self.app_id, self.store_id, token, self.bearer_token],
        )
        return SessionInfo.model_validate(result)

    # -- menu ----------------------------------------------------------------

    async def search_menu(self, chat_id: str, query: str, token: str | None = None) -> list[MenuItem]:
        result = await self._call("searchMenu", [chat_id, query], token)
        # The wrapper returns a bare list; older deployments wrap it in {"items": [...]}
        raw_items = result if isinstance(result, list) else (result or {}).get("items") or []
        return [MenuItem.model_validate(item) for item in raw_items]

    # -- basket --------------------------------------------------------------

    async def get_basket(self, chat_id: str, token: str | None = None) -> Basket:
        result = await self._call("getBasket", [chat_id], token)
        return Basket.model_validate(result or {})

    async def update_basket(self, chat_id: str, updates: dict, token: str | None = None) -> Any:
        """Add/remove items on a guest session."""
        return await self._call("updateBasket", [chat_id, updates], token)

    async def update_basket_items(self, chat_id: str, updates: dict, token: str) -> Any:
        """Add/remove items on an authenticated session (dedicated endpoint)."""
        logger.debug("API request: updateBasketItems (authenticated) chat_id={}", chat_id)
        return await self._post(
            "/tools/basket/update-items", {"chatId": chat_id, **updates}, token
        )

    async def clear_basket(self, chat_id: str, token: str | None = None) -> Any:
        # The token travels as an argument here, not as the Authorization header
        return await self._call("clearBasket", [chat_id, token])

    # -- checkout ------------------------------------------------------------

    async def submit_order(
        self, chat_id: str, token: str, payment_account_id: int | None = None
    ) -> OrderResult:
        result = await self._call(
            "submitOrder",
            [chat_id, token, payment_account_id, self.app_id, self.bearer_token],
        )
        return OrderResult.model_validate(result or {})

    async def get_payment_accounts(self, token: str) -> dict:
        result = await self._call("getPaymentAccounts", [token, self.app_id])
        return result or {"accounts": []}

    async def get_restaurant_status(self) -> dict:
        return await self._call("getRestaurantStatus", [self.store_id]) or {}

    # -- OTP -----------------------------------------------------------------

    async def send_otp(self, phone_number: str) -> OtpResult:
        result = await self._call("sendOTP", [phone_number])
        return OtpResult.model_validate(result or {})

    async def verify_otp(self, phone_number: str, code: str, chat_id: str | None = None) -> OtpResult:
        result = await self._call("verifyOTP", [phone_number, code, chat_id, self.app_id])
        return OtpResult.model_validate(result or {})
