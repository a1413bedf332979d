"""Builds typed PendingActions from a classified chat turn."""
import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from intent_engine.services.actions.models import (
    ActionType,
    AddToOrderPayload,
    CheckOrderPayload,
    ClarificationPayload,
    ConfirmOrderPayload,
    EditItem,
    EditOrderPayload,
    EditSubAction,
    ModifyOrderItemPayload,
    OrderDiff,
    OrderSnapshot,
    PendingAction,
    RecommendationPayload,
    RemoveFromOrderPayload,
    SpecificOrderEditPayload,
)
from intent_engine.services.context.models import ActionContext, OpenOrder
from intent_engine.services.extraction.items import extract_items
from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.intent.categories import IntentCategory
from intent_engine.services.recommendations.engine import RecommendationEngine
from intent_engine.services.recommendations.models import RecommendationSuggestion

logger = logging.getLogger(__name__)

HASH_CODE = re.compile(r"#([a-z0-9]{6})\b", re.IGNORECASE)
BARE_CODE = re.compile(r"\b((?=[a-z]*\d)[a-z0-9]{6})\b", re.IGNORECASE)
ORDINAL_REFERENCE = re.compile(r"\b(?:the\s+)?(first|second|third|last)\s+(?:one|order)\b", re.IGNORECASE)
ORDINALS = {"first": 0, "second": 1, "third": 2, "last": -1}

CANCEL_WORDS = re.compile(r"\bcancel", re.IGNORECASE)
REMOVE_WORDS = re.compile(r"\b(remove|delete|take\s+off)\b", re.IGNORECASE)
QUANTITY_CHANGE = re.compile(
    r"change.*quantity|modify.*quantity|\bmake\s+it\s+\d+|\bchange\s+to\s+\d+|\d+\s+of\b",
    re.IGNORECASE,
)
ADD_WORDS = re.compile(r"\badd\b", re.IGNORECASE)
TARGET_QUANTITY = re.compile(r"\b(?:to|make\s+it)\s+(\d+)\b", re.IGNORECASE)

# Used when the item is not on the catalog snapshot
FOOD_NOUN = re.compile(
    r"\b(?:(\d+)\s+)?(?:([a-z]+)\s+)?(pizza|salad|burger|drink|appetizer|dessert|sandwich|pasta|soup|wing)s?\b",
    re.IGNORECASE,
)
NOT_AN_ADJECTIVE = {
    "a", "an", "the", "some", "my", "more", "add", "remove", "delete", "of", "to", "from", "and",
}

CLARIFICATION_STOPWORDS = {
    "the", "and", "for", "with", "what", "which", "kind", "kinds", "type", "types", "you", "your",
    "have", "mean", "one", "ones", "options", "are", "there", "any", "some", "can", "get", "want",
}

SPECIFIC_EDIT_FALLBACKS = ["show_order_details", "cancel_action"]


def order_total(items: List[ParsedOrderItem]) -> float:
    """Sum of unit price x quantity, rounded to cents."""
    return round(sum(item.line_total for item in items), 2)


def _money(amount: float) -> str:
    return f"${amount:.2f}"


def create_add_to_order_action(
    items: List[ParsedOrderItem], restaurant_id: str, table_number: Optional[int] = None
) -> PendingAction:
    total = order_total(items)
    summary = ", ".join(f"{item.quantity}x {item.name}" for item in items)
    if len(items) == 1:
        item = items[0]
        message = f"Add {item.quantity}x {item.name} ({_money(item.unit_price)} each) to your order?"
    else:
        message = f"Add {summary} to your order? That's {_money(total)} in total."
    return PendingAction(
        type=ActionType.ADD_TO_ORDER,
        description=f"Add {summary} to order",
        data=AddToOrderPayload(items=items, total=total),
        confirmation_message=message,
        fallback_options=["show_alternatives", "modify_quantity"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_confirm_order_action(
    items: List[ParsedOrderItem], restaurant_id: str, table_number: Optional[int] = None
) -> PendingAction:
    total = order_total(items)
    lines = "\n".join(f"- {item.quantity}x {item.name} - {_money(item.line_total)}" for item in items)
    return PendingAction(
        type=ActionType.CONFIRM_ORDER,
        description="Order: " + ", ".join(f"{item.quantity}x {item.name}" for item in items),
        data=ConfirmOrderPayload(items=items, total=total),
        confirmation_message=(
            f"I'll place this order for you:\n\n{lines}\n\nTotal: {_money(total)}\n\nShall I place this order?"
        ),
        fallback_options=["modify_quantities", "remove_items", "add_more_items"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_remove_from_order_action(
    items: List[ParsedOrderItem], restaurant_id: str, table_number: Optional[int] = None
) -> PendingAction:
    names = ", ".join(item.name for item in items)
    return PendingAction(
        type=ActionType.REMOVE_FROM_ORDER,
        description=f"Remove {names} from order",
        data=RemoveFromOrderPayload(items=items),
        confirmation_message=f"Remove {names} from your order?",
        fallback_options=["replace_with_alternative", "keep_item"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_modify_order_item_action(
    order: OpenOrder,
    menu_item_id: str,
    item_name: str,
    old_quantity: int,
    new_quantity: int,
    unit_price: float,
    restaurant_id: str,
    table_number: Optional[int] = None,
) -> PendingAction:
    diff = OrderDiff(
        before=OrderSnapshot(quantity=old_quantity, total=round(unit_price * old_quantity, 2)),
        after=OrderSnapshot(quantity=new_quantity, total=round(unit_price * new_quantity, 2)),
    )
    change = diff.price_difference
    if change > 0:
        change_text = f"increase your total by {_money(change)}"
    elif change < 0:
        change_text = f"reduce your total by {_money(abs(change))}"
    else:
        change_text = "leave your total unchanged"
    return PendingAction(
        type=ActionType.MODIFY_ORDER_ITEM,
        description=f"Change {item_name} quantity from {old_quantity} to {new_quantity}",
        data=ModifyOrderItemPayload(
            order_id=order.id,
            menu_item_id=menu_item_id,
            item_name=item_name,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            unit_price=unit_price,
            before_after=diff,
        ),
        confirmation_message=(
            f"Change {item_name} quantity from {old_quantity} to {new_quantity}? This will {change_text}."
        ),
        fallback_options=["keep_original_quantity", "try_different_quantity"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_clarification_action(
    original_request: str, options: List[str], restaurant_id: str, table_number: Optional[int] = None
) -> PendingAction:
    return PendingAction(
        type=ActionType.REQUEST_CLARIFICATION,
        description=f"Clarify request: {original_request}",
        data=ClarificationPayload(original_request=original_request, options=options),
        confirmation_message=f'I found several options for "{original_request}". Which one did you mean?',
        fallback_options=list(options),
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_recommendation_action(
    suggestions: List[RecommendationSuggestion],
    context_text: str,
    restaurant_id: str,
    table_number: Optional[int] = None,
) -> PendingAction:
    names = [item.name for suggestion in suggestions for item in suggestion.items]
    return PendingAction(
        type=ActionType.REQUEST_RECOMMENDATION,
        description=f"Recommend items based on: {context_text}",
        data=RecommendationPayload(context=context_text, suggestions=suggestions),
        confirmation_message=suggestions[0].message,
        fallback_options=names or ["view_menu"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_order_check_action(restaurant_id: str, table_number: Optional[int] = None) -> PendingAction:
    return PendingAction(
        type=ActionType.CHECK_ORDER,
        description="Check recent orders",
        data=CheckOrderPayload(table_number=table_number),
        confirmation_message="Let me check your recent orders...",
        requires_confirmation=False,
        fallback_options=["view_menu", "place_new_order"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def create_order_edit_action(
    order_ids: List[str], restaurant_id: str, table_number: Optional[int] = None
) -> PendingAction:
    return PendingAction(
        type=ActionType.EDIT_ORDER,
        description="Edit existing order",
        data=EditOrderPayload(table_number=table_number, order_ids=order_ids),
        confirmation_message="Would you like me to show your orders so you can make changes?",
        fallback_options=["check_orders", "place_new_order"],
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


def resolve_order_id(text: str, context: ActionContext) -> Optional[str]:
    """
    Work out which order a specific edit refers to.

    Tries, in order: a "#CODE" reference, a bare six-character code with a
    digit in it, an ordinal ("the second one") against the open orders, and
    finally the order the conversation is already focused on.

    Returns:
        Upper-cased six-character order code, or None when nothing resolves
    """
    match = HASH_CODE.search(text)
    if match:
        return match.group(1).upper()

    match = BARE_CODE.search(text)
    if match:
        return match.group(1).upper()

    match = ORDINAL_REFERENCE.search(text)
    if match and context.current_orders:
        index = ORDINALS[match.group(1).lower()]
        if index < len(context.current_orders):
            return context.current_orders[index].short_id

    if context.current_order_id:
        return context.current_order_id[-6:].upper()

    return None


def full_order_id(order_ref: str, context: ActionContext) -> str:
    """Map a six-character code back to the full id of an order the context knows."""
    order = context.find_order(order_ref)
    if order is not None:
        return order.id
    if context.current_order_id and context.current_order_id[-6:].upper() == order_ref:
        return context.current_order_id
    return order_ref


def detect_sub_action(text: str) -> EditSubAction:
    if CANCEL_WORDS.search(text):
        return EditSubAction.CANCEL_ORDER
    if REMOVE_WORDS.search(text):
        return EditSubAction.REMOVE_ITEM
    if QUANTITY_CHANGE.search(text):
        return EditSubAction.MODIFY_QUANTITY
    if ADD_WORDS.search(text):
        return EditSubAction.ADD_ITEM
    return EditSubAction.SELECT_ORDER


def extract_edit_item(text: str, context: ActionContext, sub_action: EditSubAction) -> Optional[EditItem]:
    """Find the item an add/remove/modify edit talks about."""
    target_quantity = None
    if sub_action == EditSubAction.MODIFY_QUANTITY:
        match = TARGET_QUANTITY.search(text)
        if match and int(match.group(1)) >= 1:
            target_quantity = int(match.group(1))

    items = extract_items(text, context.available_menu_items())
    if items:
        item = items[0]
        return EditItem(
            name=item.name,
            quantity=target_quantity or item.quantity,
            menu_item_id=item.menu_item_id,
            unit_price=item.unit_price,
        )

    for match in FOOD_NOUN.finditer(text):
        count, adjective, noun = match.groups()
        words = [noun.lower()]
        if adjective and adjective.lower() not in NOT_AN_ADJECTIVE:
            words.insert(0, adjective.lower())
        quantity = target_quantity or (int(count) if count and int(count) >= 1 else 1)
        return EditItem(name=" ".join(words), quantity=quantity, needs_clarification=True)

    return None


def _specific_edit_messages(order_ref: str, sub_action: EditSubAction, item: Optional[EditItem]) -> Tuple[str, str]:
    """Returns (confirmation message, description) for a specific order edit."""
    code = f"#{order_ref}"
    if sub_action == EditSubAction.CANCEL_ORDER:
        return f"Are you sure you want to cancel order {code}?", f"Cancel order {code}"
    if sub_action == EditSubAction.REMOVE_ITEM:
        if item:
            return f"Remove {item.name} from order {code}?", f"Remove {item.name} from order {code}"
        return f"What item would you like to remove from order {code}?", f"Remove item from order {code}"
    if sub_action == EditSubAction.ADD_ITEM:
        if item:
            return (
                f"Add {item.quantity}x {item.name} to order {code}?",
                f"Add {item.quantity}x {item.name} to order {code}",
            )
        return f"What item would you like to add to order {code}?", f"Add item to order {code}"
    if sub_action == EditSubAction.MODIFY_QUANTITY:
        if item:
            return (
                f"Change {item.name} quantity to {item.quantity} in order {code}?",
                f"Change {item.name} quantity to {item.quantity} in order {code}",
            )
        return (
            f"What quantity changes would you like to make to order {code}?",
            f"Modify quantities in order {code}",
        )
    return (
        f"You've selected order {code}. What would you like to do with this order?",
        f"Select order {code}",
    )


class ActionBuilder:
    """Turns (category, text, context) into a PendingAction or None."""

    def __init__(self, recommendations: Optional[RecommendationEngine] = None):
        self.recommendations = recommendations or RecommendationEngine()
        self._builders: Dict[IntentCategory, Callable[[str, ActionContext], Optional[PendingAction]]] = {
            IntentCategory.ADD_TO_ORDER: self.build_add,
            IntentCategory.CONFIRM_ORDER: self.build_confirm,
            IntentCategory.REMOVE_FROM_ORDER: self.build_remove,
            IntentCategory.MODIFY_ORDER_ITEM: self.build_modify,
            IntentCategory.REQUEST_CLARIFICATION: self.build_clarification,
            IntentCategory.REQUEST_RECOMMENDATION: self.build_recommendation,
            IntentCategory.CHECK_ORDER: self.build_check,
            IntentCategory.EDIT_ORDER: self.build_edit,
            IntentCategory.SPECIFIC_ORDER_EDIT: self.build_specific_edit,
        }

    def build(self, category: IntentCategory, text: str, context: ActionContext) -> Optional[PendingAction]:
        """
        Build the action for a classified turn.

        Args:
            category: Output of the intent classifier
            text: The chat turn the category came from
            context: Read-only snapshot for this turn

        Returns:
            A PendingAction, or None when there is nothing actionable
        """
        category = IntentCategory(category)
        builder = self._builders.get(category)
        if builder is None:
            return None

        action = builder(text, context)
        if action is None:
            logger.debug(f"[BUILDER] No action built for {category.value}")
        else:
            logger.debug(f"[BUILDER] Built {action.type.value} action {action.id}: {action.description}")
        return action

    def build_add(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        items = extract_items(text, context.available_menu_items())
        if not items:
            return None
        return create_add_to_order_action(items, context.restaurant_id, context.table_number)

    def build_confirm(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        # "that's all" names no items, so fall back to what has been collected so far
        items = extract_items(text, context.available_menu_items()) or list(context.current_order)
        if not items:
            return None
        return create_confirm_order_action(items, context.restaurant_id, context.table_number)

    def build_remove(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        items = extract_items(text, context.available_menu_items())
        if not items:
            return None
        return create_remove_from_order_action(items, context.restaurant_id, context.table_number)

    def build_modify(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        modifiable = [order for order in context.current_orders if order.can_modify]
        for item in extract_items(text, context.available_menu_items()):
            for order in modifiable:
                line = next((c for c in order.items if c.menu_item_id == item.menu_item_id), None)
                if line is None:
                    continue
                return create_modify_order_item_action(
                    order,
                    menu_item_id=item.menu_item_id,
                    item_name=item.name,
                    old_quantity=line.quantity,
                    new_quantity=item.quantity,
                    unit_price=line.price or item.unit_price,
                    restaurant_id=context.restaurant_id,
                    table_number=context.table_number,
                )
        return None

    def build_clarification(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        words = {
            word
            for word in re.findall(r"[a-z]+", text.lower())
            if len(word) >= 3 and word not in CLARIFICATION_STOPWORDS
        }
        if not words:
            return None

        options = []
        for item in context.available_menu_items():
            name_words = set(re.findall(r"[a-z]+", item.name.lower()))
            # "pizzas" should still match "pizza"
            if name_words & words or {w + "s" for w in name_words} & words:
                options.append(item.name)

        if len(options) < 2:
            return None
        return create_clarification_action(text.strip(), options, context.restaurant_id, context.table_number)

    def build_recommendation(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        suggestions = self.recommendations.recommend(context)
        if not suggestions:
            return None
        return create_recommendation_action(suggestions, text.strip(), context.restaurant_id, context.table_number)

    def build_check(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        return create_order_check_action(context.restaurant_id, context.table_number)

    def build_edit(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        order_ids = [order.id for order in context.current_orders if order.can_modify]
        return create_order_edit_action(order_ids, context.restaurant_id, context.table_number)

    def build_specific_edit(self, text: str, context: ActionContext) -> Optional[PendingAction]:
        message = text.strip()
        order_ref = resolve_order_id(message, context)
        if order_ref is None:
            logger.debug("[BUILDER] Specific order edit without a resolvable order id")
            return None

        sub_action = detect_sub_action(message)
        item = None
        if sub_action in (EditSubAction.ADD_ITEM, EditSubAction.REMOVE_ITEM, EditSubAction.MODIFY_QUANTITY):
            item = extract_edit_item(message, context, sub_action)
            if item is not None and item.needs_clarification:
                logger.info(f"[BUILDER] '{item.name}' is not on the menu, order #{order_ref} edit needs clarification")

        confirmation_message, description = _specific_edit_messages(order_ref, sub_action, item)
        return PendingAction(
            type=ActionType.SPECIFIC_ORDER_EDIT,
            description=description,
            data=SpecificOrderEditPayload(
                order_id=full_order_id(order_ref, context),
                order_ref=order_ref,
                action_type=sub_action,
                item=item,
                original_message=message,
            ),
            confirmation_message=confirmation_message,
            fallback_options=list(SPECIFIC_EDIT_FALLBACKS),
            restaurant_id=context.restaurant_id,
            table_number=context.table_number,
        )
