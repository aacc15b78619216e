"""Shared pytest fixtures for FlipDish MCP tests."""

from pathlib import Path

import pytest

from flipdish_mcp.enums import Widget
from flipdish_mcp.errors import RemoteError
from flipdish_mcp.executor import ToolExecutor
from flipdish_mcp.models import Basket, MenuItem, OrderResult, OtpResult, SessionInfo
from flipdish_mcp.state import SessionStore

PIZZA_RESULTS = [
    {"menuItemId": 1, "name": "Margherita", "price": 9.5},
    {"menuItemId": 2, "name": "Pepperoni", "price": 11.0},
    {
        "menuItemId": 3,
        "name": "Build Your Own",
        "price": 8.0,
        "menuItemOptions": {
            "menuItemOptionSetId": 10,
            "optionsRules": "Select exactly 1 (required)",
            "options": [
                {"menuItemOptionSetItemId": 101, "name": "Small", "price": 0},
                {"menuItemOptionSetItemId": 102, "name": "Large", "price": 3},
            ],
            "afterChoosingThis": {
                "menuItemOptionSetId": 11,
                "optionsRules": "Choose up to 3 toppings",
                "options": [
                    {"menuItemOptionSetItemId": 201, "name": "Olives", "price": 1},
                    {"menuItemOptionSetItemId": 202, "name": "Ham", "price": 1.5},
                ],
            },
        },
    },
]


def _next(fake: "FakeFlipDishClient", attr: str) -> dict:
    """Return a canned response, consuming it if a list was configured."""
    value = getattr(fake, attr)
    if isinstance(value, list):
        return value.pop(0) if len(value) > 1 else value[0]
    return value


class FakeFlipDishClient:
    """Records calls and replays canned responses in place of FlipDishClient.

    `failures` maps an operation name to a list of exceptions raised (in
    order) before the operation starts succeeding. The canned order and OTP
    results may also be lists, replayed one per call.
    """

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, list[Exception]] = {}
        self.session_ids = iter(f"chat-{n}" for n in range(1, 100))
        self.search_results: list[dict] = list(PIZZA_RESULTS)
        self.basket: dict = {"basketMenuItems": [], "totalPrice": 0}
        self.order_result: dict = {"success": True, "orderId": "ord-1", "leadTimePrompt": "Ready in 20 minutes"}
        self.send_result: dict = {"success": True}
        self.verify_result: dict = {"success": True, "token": "tok-123"}
        self.payment_accounts: dict = {"accounts": [{"paymentAccountId": 7}]}
        self.status: dict = {"isOpen": True}

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        pending = self.failures.get(name)
        if pending:
            raise pending.pop(0)

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    async def create_session(self, token=None):
        self._record("create_session", token)
        return SessionInfo(chat_id=next(self.session_ids))

    async def search_menu(self, chat_id, query, token=None):
        self._record("search_menu", chat_id, query, token)
        return [MenuItem.model_validate(item) for item in self.search_results]

    async def get_basket(self, chat_id, token=None):
        self._record("get_basket", chat_id, token)
        return Basket.model_validate(self.basket)

    async def update_basket(self, chat_id, updates, token=None):
        self._record("update_basket", chat_id, updates, token)
        return {}

    async def clear_basket(self, chat_id, token=None):
        self._record("clear_basket", chat_id, token)
        return {}

    async def submit_order(self, chat_id, token, payment_account_id=None):
        self._record("submit_order", chat_id, token, payment_account_id)
        return OrderResult.model_validate(_next(self, "order_result"))

    async def send_otp(self, phone_number):
        self._record("send_otp", phone_number)
        return OtpResult.model_validate(_next(self, "send_result"))

    async def verify_otp(self, phone_number, code, chat_id=None):
        self._record("verify_otp", phone_number, code, chat_id)
        return OtpResult.model_validate(_next(self, "verify_result"))

    async def get_restaurant_status(self):
        self._record("get_restaurant_status")
        return self.status

    async def get_payment_accounts(self, token):
        self._record("get_payment_accounts", token)
        return self.payment_accounts


def context_not_found() -> RemoteError:
    return RemoteError(500, '{"error": "Call context not found for chatId"}')


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / ".session_cache.json"


@pytest.fixture
def store(cache_path: Path) -> SessionStore:
    """Fresh persisted session store in a temp directory."""
    return SessionStore(cache_path)


@pytest.fixture
def fake_client() -> FakeFlipDishClient:
    return FakeFlipDishClient()


@pytest.fixture
def executor(fake_client: FakeFlipDishClient, store: SessionStore) -> ToolExecutor:
    return ToolExecutor(fake_client, store)


@pytest.fixture
def widgets_dir(tmp_path: Path) -> Path:
    """Minimal built widget tree with one index.html per surface."""
    root = tmp_path / "widgets"
    for widget in Widget:
        html_dir = root / widget.slug
        html_dir.mkdir(parents=True)
        (html_dir / "index.html").write_text(f"<div id='{widget.slug}'></div>", encoding="utf-8")
    return root
