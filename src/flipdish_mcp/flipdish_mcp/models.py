import re
from typing import Annotated, Any, Self

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .errors import OptionChainError

# Upper bound on option-set groups followed through `afterChoosingThis`.
MAX_OPTION_CHAIN_DEPTH = 32

# Matches "select exactly 1", "select up to 1", "choose 1", "choose exactly one", ...
_SINGLE_SELECT_PATTERN = re.compile(
    r"select\s+(exactly|up\s+to)?\s*1\b|choose\s+(exactly|up\s+to)?\s*(one|1)\b"
)

# Display fields the backend sometimes sends as null
Text = Annotated[str, BeforeValidator(lambda v: "" if v is None else v)]
Amount = Annotated[float, BeforeValidator(lambda v: 0.0 if v is None else v)]


class WireModel(BaseModel):
    """Base for payloads exchanged with the FlipDish wrapper.

    Fields are snake_case in Python and camelCase on the wire. Unknown wire
    fields are kept so payloads pass through to the widgets untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump with wire names, keeping only what was actually set."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class OptionSetItem(WireModel):
    menu_item_option_set_item_id: int
    name: Text = ""
    price: Amount = 0.0


class OptionSet(WireModel):
    menu_item_option_set_id: int
    options_rules: Text = ""
    options: list[OptionSetItem] = Field(default_factory=list)
    after_choosing_this: "OptionSet | None" = None

    @property
    def is_single_select(self) -> bool:
        return bool(_SINGLE_SELECT_PATTERN.search(self.options_rules.lower()))

    @property
    def is_required(self) -> bool:
        return "required" in self.options_rules.lower()

    @property
    def option_ids(self) -> set[int]:
        return {option.menu_item_option_set_item_id for option in self.options}

    def chain(self, limit: int = MAX_OPTION_CHAIN_DEPTH) -> list["OptionSet"]:
        """Flatten the `afterChoosingThis` linked list into an ordered list.

        Raises:
            OptionChainError: if more than `limit` groups are linked, which
                only happens when the backend returns a cyclic chain.
        """
        groups: list[OptionSet] = []
        current: OptionSet | None = self
        while current is not None:
            if len(groups) >= limit:
                raise OptionChainError(
                    f"Option set chain starting at {self.menu_item_option_set_id} "
                    f"exceeds {limit} groups"
                )
            groups.append(current)
            current = current.after_choosing_this
        return groups


class MenuItem(WireModel):
    menu_item_id: int
    name: Text = ""
    price: Amount = 0.0
    menu_item_options: OptionSet | None = None

    def option_sets(self) -> list[OptionSet]:
        """Sequential choice groups for this item (empty when it has none)."""
        if self.menu_item_options is None:
            return []
        return self.menu_item_options.chain()


class BasketItem(WireModel):
    menu_item_id: int
    name: Text = ""
    price: Amount = 0.0
    quantity: int = 1


class Basket(WireModel):
    basket_menu_items: list[BasketItem] = Field(default_factory=list)
    total_price: Amount = 0.0

    @classmethod
    def empty(cls) -> "Basket":
        return cls(basket_menu_items=[], total_price=0)

    def find(self, menu_item_id: int) -> BasketItem | None:
        return next(
            (i for i in self.basket_menu_items if i.menu_item_id == menu_item_id),
            None,
        )


class SessionInfo(WireModel):
    chat_id: str
    basket: Basket | None = None


class OrderResult(WireModel):
    success: bool = False
    order_id: str | int | None = None
    lead_time_prompt: str | None = None
    error: str | None = None


class OtpResult(WireModel):
    success: bool = False
    token: str | None = None
    error: str | None = None


class SessionSnapshot(WireModel):
    """Everything the bridge remembers between tool calls (and restarts)."""

    chat_id: str | None = None
    auth_token: str | None = None
    phone_number: str | None = None
    search_results: list[MenuItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_auth_pair(self) -> Self:
        if bool(self.auth_token) != bool(self.phone_number):
            raise ValueError("authToken and phoneNumber must be set together")
        return self
