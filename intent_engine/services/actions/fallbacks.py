"""Follow-ups offered when the customer declines a pending action."""
import logging
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from intent_engine.services.actions.builder import (
    create_clarification_action,
    create_recommendation_action,
)
from intent_engine.services.actions.models import ActionType, EditSubAction, PendingAction
from intent_engine.services.context.models import ActionContext
from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.menu.base import MenuItemRef
from intent_engine.services.recommendations.engine import RecommendationEngine
from intent_engine.services.recommendations.models import (
    RecommendationSuggestion,
    SuggestedItem,
    SuggestionType,
)

logger = logging.getLogger(__name__)


class FallbackResponse(BaseModel):
    """What the assistant says and offers after a rejection."""

    message: str
    alternatives: List[PendingAction] = Field(default_factory=list)
    suggested_actions: List[str] = Field(default_factory=list)
    helpful_tips: List[str] = Field(default_factory=list)


def find_similar_items(target: ParsedOrderItem, menu_items: List[MenuItemRef], limit: int = 3) -> List[MenuItemRef]:
    """
    Rank catalog items by how much they look like the target.

    Each word of the target's name found in an item's name scores 2, and an
    item whose category appears in the target's name scores 1 more.
    """
    target_name = target.name.lower()
    target_words = target_name.split()

    scored = []
    for item in menu_items:
        if item.id == target.menu_item_id or not item.available:
            continue
        item_name = item.name.lower()
        similarity = sum(2 for word in target_words if word in item_name)
        if item.category and item.category.lower() in target_name:
            similarity += 1
        if similarity > 0:
            scored.append((similarity, item))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored[:limit]]


class RejectionHandler:
    """Builds a FallbackResponse for a declined action, by action type."""

    def __init__(self, recommendations: Optional[RecommendationEngine] = None):
        self.recommendations = recommendations or RecommendationEngine()
        self._handlers: Dict[ActionType, Callable[[PendingAction, ActionContext], FallbackResponse]] = {
            ActionType.ADD_TO_ORDER: self._add_rejected,
            ActionType.REMOVE_FROM_ORDER: self._remove_rejected,
            ActionType.MODIFY_ORDER_ITEM: self._modify_rejected,
            ActionType.CONFIRM_ORDER: self._confirm_rejected,
            ActionType.SPECIFIC_ORDER_EDIT: self._specific_edit_rejected,
        }

    def handle(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        handler = self._handlers.get(action.type, self._generic_rejected)
        response = handler(action, context)
        logger.info(
            f"[FALLBACK] {action.type.value} action {action.id} declined, "
            f"offering {len(response.alternatives)} alternative(s)"
        )
        return response

    def _add_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        rejected = action.data.items[0]
        alternatives = []

        similar = find_similar_items(rejected, context.menu_items)
        if similar:
            suggestion = RecommendationSuggestion(
                type=SuggestionType.COMPLEMENT,
                priority=5,
                message=f"How about these alternatives to {rejected.name}?",
                items=[
                    SuggestedItem(
                        id=item.id,
                        name=item.name,
                        price=float(item.price),
                        reason="Similar to what you were considering",
                    )
                    for item in similar
                ],
                confidence=0.6,
            )
            alternatives.append(
                create_recommendation_action(
                    [suggestion],
                    f"alternatives to {rejected.name}",
                    context.restaurant_id,
                    context.table_number,
                )
            )

        if context.current_order:
            suggestions = self.recommendations.recommend(context)
            if suggestions:
                alternatives.append(
                    create_recommendation_action(
                        suggestions[:1],
                        "current order",
                        context.restaurant_id,
                        context.table_number,
                    )
                )

        return FallbackResponse(
            message=(
                f"No problem! Would you like me to suggest something similar to {rejected.name}, "
                "or would you prefer to browse other options?"
            ),
            alternatives=alternatives,
            suggested_actions=[
                "Show similar items",
                "Browse other categories",
                "Get personalized recommendations",
                "See what's popular",
            ],
            helpful_tips=[
                "You can always ask me about ingredients or dietary options",
                "I can recommend items based on your preferences",
            ],
        )

    def _remove_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        names = ", ".join(item.name for item in action.data.items)
        return FallbackResponse(
            message=f"Alright, I'll keep the {names} in your order. Is there anything else you'd like to modify?",
            suggested_actions=["Modify quantities", "Add more items", "Review current order", "Proceed to checkout"],
            helpful_tips=[
                "You can change quantities instead of removing items completely",
                "I can suggest sides or drinks to go with your order",
            ],
        )

    def _modify_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        data = action.data
        return FallbackResponse(
            message=(
                f"Got it, I'll leave the {data.item_name} quantity at {data.old_quantity}. "
                "Would you like to change anything else about your order?"
            ),
            suggested_actions=["Modify other items", "Add more items", "Remove items", "Review order summary"],
            helpful_tips=[
                "You can modify multiple items at once",
                "Let me know if you want to try a different quantity",
            ],
        )

    def _confirm_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        alternatives = []
        if context.current_order or action.data.items:
            alternatives.append(
                create_clarification_action(
                    "modify your order",
                    ["Add more items", "Remove items", "Change quantities", "Start over"],
                    context.restaurant_id,
                    context.table_number,
                )
            )
        return FallbackResponse(
            message=(
                "That's perfectly fine! Would you like to add more items, modify something, "
                "or would you prefer to start over?"
            ),
            alternatives=alternatives,
            suggested_actions=[
                "Add more items",
                "Modify quantities",
                "Remove items",
                "Start fresh",
                "Get recommendations",
            ],
            helpful_tips=[
                "Take your time to get your order just right",
                "I can suggest popular combinations",
                "You can always ask about ingredients or preparation",
            ],
        )

    def _specific_edit_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        if action.data.action_type != EditSubAction.CANCEL_ORDER:
            return self._generic_rejected(action, context)
        return FallbackResponse(
            message="No worries! Your order is still active. What would you like to do next?",
            suggested_actions=[
                "Continue with current order",
                "Add more items",
                "Modify existing items",
                "Review order summary",
            ],
            helpful_tips=[
                "Your order is safe and ready when you are",
                "I'm here to help with any changes you need",
            ],
        )

    def _generic_rejected(self, action: PendingAction, context: ActionContext) -> FallbackResponse:
        return FallbackResponse(
            message="No problem! What would you like to do instead?",
            suggested_actions=["Browse menu", "Get recommendations", "Start over", "Ask questions"],
            helpful_tips=[
                "I'm here to help with whatever you need",
                "Feel free to ask me about our menu or specials",
            ],
        )


def handle_rejection(
    action: PendingAction,
    context: ActionContext,
    recommendations: Optional[RecommendationEngine] = None,
) -> FallbackResponse:
    """Convenience wrapper around RejectionHandler.handle."""
    return RejectionHandler(recommendations).handle(action, context)
