"""Request context shared by the action and recommendation endpoints."""
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from intent_engine.core.errors import InvalidContextError
from intent_engine.services.context.models import (
    ActionContext,
    ConversationMessage,
    CustomerSession,
    OpenOrder,
    RestaurantSettings,
)
from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.menu.base import MenuItemRef
from intent_engine.services.menu.repository import MenuRepository

logger = logging.getLogger(__name__)


class ContextRequest(BaseModel):
    """Turn context as sent by the host. Menu items default to the configured catalog."""

    restaurant_id: Optional[str] = None
    table_number: Optional[int] = None
    menu_items: Optional[List[MenuItemRef]] = None
    conversation_history: List[ConversationMessage] = Field(default_factory=list)
    current_order_id: Optional[str] = None
    customer_session: Optional[CustomerSession] = None
    current_orders: List[OpenOrder] = Field(default_factory=list)
    current_order: List[ParsedOrderItem] = Field(default_factory=list)
    restaurant_settings: Optional[RestaurantSettings] = None


async def build_context(request: ContextRequest, menu_repository: MenuRepository) -> ActionContext:
    """
    Resolve a request context into an ActionContext.

    Raises:
        InvalidContextError: If no restaurant id is given or configured
    """
    menu_items = request.menu_items
    restaurant_id = request.restaurant_id
    if menu_items is None or not restaurant_id:
        catalog = await menu_repository.get_menu()
        if menu_items is None:
            menu_items = catalog.items
            logger.debug(f"[CONTEXT] Using default catalog with {len(menu_items)} items")
        restaurant_id = restaurant_id or catalog.restaurant_id

    if not restaurant_id:
        raise InvalidContextError("restaurant_id is required when no default catalog restaurant is configured")

    return ActionContext(
        restaurant_id=restaurant_id,
        table_number=request.table_number,
        menu_items=menu_items,
        conversation_history=request.conversation_history,
        current_order_id=request.current_order_id,
        customer_session=request.customer_session,
        current_orders=request.current_orders,
        current_order=request.current_order,
        restaurant_settings=request.restaurant_settings,
    )
