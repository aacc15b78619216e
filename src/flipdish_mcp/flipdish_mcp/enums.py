from enum import StrEnum


class ToolName(StrEnum):
    SEARCH_MENU = "search_menu"
    ADD_TO_BASKET = "add_to_basket"
    VIEW_BASKET = "view_basket"
    REMOVE_FROM_BASKET = "remove_from_basket"
    CLEAR_BASKET = "clear_basket"
    SUBMIT_ORDER = "submit_order"
    SEND_OTP = "send_otp"
    VERIFY_OTP = "verify_otp"
    GET_RESTAURANT_STATUS = "get_restaurant_status"
    GET_PAYMENT_ACCOUNTS = "get_payment_accounts"
    LOGOUT = "logout"


class Widget(StrEnum):
    """UI surfaces the assistant runtime can render, keyed by resource URI."""

    MENU_CAROUSEL = "ui://widgets/menu-carousel"
    LOGIN = "ui://widgets/login"
    BASKET = "ui://widgets/basket"

    @property
    def slug(self) -> str:
        """Directory name of the built widget, e.g. "menu-carousel"."""
        return self.value.rsplit("/", 1)[-1]

    @property
    def meta(self) -> dict:
        """Static `_meta` advertised on tools and resources for this surface."""
        return {
            "openai/outputTemplate": self.value,
            "openai/widgetAccessible": True,
            "openai/allowToolCall": True,
        }
