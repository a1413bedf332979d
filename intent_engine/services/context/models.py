"""Read-only conversation and order snapshots supplied by the host."""
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from intent_engine.services.menu.base import MenuItemRef
from intent_engine.services.extraction.models import ParsedOrderItem


class ConversationMessage(BaseModel):
    """A single chat turn."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


class CustomerSession(BaseModel):
    """Summary of the customer's dining session."""

    model_config = ConfigDict(frozen=True)

    id: str
    customer_name: Optional[str] = None
    start_time: Optional[datetime] = None
    total_orders: int = 0
    total_spent: float = 0.0


class OpenOrderLine(BaseModel):
    """A line of an order that was already placed."""

    model_config = ConfigDict(frozen=True)

    menu_item_id: str
    name: str
    quantity: int = 1
    price: float = 0.0


class OpenOrder(BaseModel):
    """An order placed earlier in the session."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: str = "PENDING"
    items: List[OpenOrderLine] = Field(default_factory=list)
    can_modify: bool = True

    @property
    def short_id(self) -> str:
        """Six-character code customers see for this order."""
        return self.id[-6:].upper()

    @property
    def total(self) -> float:
        return round(sum(line.price * line.quantity for line in self.items), 2)


class UpsellAggressiveness(str, Enum):
    """How hard the restaurant wants the assistant to upsell."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RestaurantSettings(BaseModel):
    """Restaurant-configured behaviour knobs."""

    model_config = ConfigDict(frozen=True)

    upsell_enabled: bool = True
    upsell_aggressiveness: UpsellAggressiveness = UpsellAggressiveness.MEDIUM


class ActionContext(BaseModel):
    """Everything the engine may consult while processing one chat turn."""

    model_config = ConfigDict(frozen=True)

    restaurant_id: str
    table_number: Optional[int] = None
    menu_items: List[MenuItemRef] = Field(default_factory=list)
    conversation_history: List[ConversationMessage] = Field(default_factory=list)
    current_order_id: Optional[str] = None
    customer_session: Optional[CustomerSession] = None
    current_orders: List[OpenOrder] = Field(default_factory=list)
    current_order: List[ParsedOrderItem] = Field(default_factory=list)  # items being assembled, not yet placed
    restaurant_settings: Optional[RestaurantSettings] = None

    @property
    def session_id(self) -> str:
        return self.customer_session.id if self.customer_session else ""

    def available_menu_items(self) -> List[MenuItemRef]:
        return [item for item in self.menu_items if item.available]

    def last_message(self) -> Optional[ConversationMessage]:
        return self.conversation_history[-1] if self.conversation_history else None

    def find_order(self, order_id: str) -> Optional[OpenOrder]:
        """Find an open order by full id or by its six-character code."""
        wanted = order_id.upper()
        for order in self.current_orders:
            if order.id.upper() == wanted or order.short_id == wanted:
                return order
        return None
