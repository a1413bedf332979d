"""Recommendation engine.

Each generator looks at one signal (what is already on the order, the time
of day, dietary mentions, popularity, premium variants) and returns zero or
more suggestions. The engine only aggregates and ranks them.
"""
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from intent_engine.services.context.models import ActionContext
from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.menu.base import MenuItemRef
from intent_engine.services.recommendations.models import (
    RecommendationSuggestion,
    SuggestedItem,
    SuggestionType,
)

logger = logging.getLogger(__name__)

MAIN_DISH_KEYWORDS = ["pizza", "burger", "steak", "chicken", "pasta", "fish", "sandwich"]
DRINK_KEYWORDS = ["drink", "soda", "juice", "water", "coffee", "tea", "beer", "wine", "lemonade"]
SIDE_KEYWORDS = ["fries", "salad", "bread", "rice", "vegetables", "side"]
DESSERT_KEYWORDS = ["cake", "ice cream", "dessert", "pie", "cookie", "chocolate"]
POPULAR_KEYWORDS = ["pizza", "burger", "chicken", "pasta", "salad"]

BREAKFAST_KEYWORDS = ["coffee", "breakfast", "pancake", "eggs"]
LUNCH_KEYWORDS = ["salad", "sandwich", "soup"]
DINNER_KEYWORDS = ["steak", "pasta", "wine"]

# diet label -> (words customers use, tag fragment on menu items)
DIETARY_KEYWORDS = {
    "vegetarian": (["vegetarian", "veggie", "no meat"], "vegetarian"),
    "vegan": (["vegan", "plant-based", "dairy-free"], "vegan"),
    "gluten-free": (["gluten-free", "gluten free", "celiac", "no gluten"], "gluten"),
    "healthy": (["healthy", "light", "low-calorie", "fresh"], "healthy"),
}

DESSERT_ORDER_VALUE = 25.0

Generator = Callable[[ActionContext, datetime], List[RecommendationSuggestion]]


def _name_has(item, keywords: Iterable[str]) -> bool:
    name = item.name.lower()
    return any(keyword in name for keyword in keywords)


def _category_has(item: MenuItemRef, *fragments: str) -> bool:
    category = (item.category or "").lower()
    return any(fragment in category for fragment in fragments)


def is_main_dish(item) -> bool:
    return _name_has(item, MAIN_DISH_KEYWORDS)


def is_drink(item: MenuItemRef) -> bool:
    return _name_has(item, DRINK_KEYWORDS) or _category_has(item, "drink", "beverage")


def is_side(item: MenuItemRef) -> bool:
    return _name_has(item, SIDE_KEYWORDS) or _category_has(item, "side")


def is_dessert(item: MenuItemRef) -> bool:
    return _name_has(item, DESSERT_KEYWORDS) or _category_has(item, "dessert")


def _suggest(items: Sequence[MenuItemRef], reason: str, limit: int) -> List[SuggestedItem]:
    return [
        SuggestedItem(id=item.id, name=item.name, price=float(item.price), reason=reason)
        for item in list(items)[:limit]
    ]


def _ordered_refs(context: ActionContext) -> List[MenuItemRef]:
    """Catalog entries for the items on the current order, unknown ids skipped."""
    by_id = {item.id: item for item in context.menu_items}
    return [by_id[line.menu_item_id] for line in context.current_order if line.menu_item_id in by_id]


def complementary_items(context: ActionContext, now: datetime) -> List[RecommendationSuggestion]:
    """Suggest drinks, sides and desserts the current order is missing."""
    order = context.current_order
    if not order:
        return []

    menu = context.available_menu_items()
    ordered = _ordered_refs(context)
    has_main = any(is_main_dish(line) for line in order)
    has_drink = any(is_drink(item) for item in ordered)
    has_side = any(is_side(item) for item in ordered)
    has_dessert = any(is_dessert(item) for item in ordered)
    order_value = sum(line.unit_price * line.quantity for line in order)

    suggestions = []
    if has_main and not has_drink:
        drinks = _suggest([i for i in menu if is_drink(i)], "Perfect to complement your meal", 3)
        if drinks:
            suggestions.append(
                RecommendationSuggestion(
                    type=SuggestionType.DRINK,
                    priority=8,
                    message="Would you like to add a refreshing drink to your order?",
                    items=drinks,
                    confidence=0.9,
                )
            )

    if has_main and not has_side:
        sides = _suggest([i for i in menu if is_side(i)], "Great addition to your main course", 3)
        if sides:
            suggestions.append(
                RecommendationSuggestion(
                    type=SuggestionType.SIDE,
                    priority=7,
                    message="How about adding a delicious side dish?",
                    items=sides,
                    confidence=0.8,
                )
            )

    if order_value > DESSERT_ORDER_VALUE and not has_dessert:
        desserts = _suggest([i for i in menu if is_dessert(i)], "Perfect way to end your meal", 2)
        if desserts:
            suggestions.append(
                RecommendationSuggestion(
                    type=SuggestionType.DESSERT,
                    priority=6,
                    message="Would you like to finish with a sweet treat?",
                    items=desserts,
                    confidence=0.7,
                )
            )

    return suggestions


def time_of_day(context: ActionContext, now: datetime) -> List[RecommendationSuggestion]:
    """Suggest breakfast, lunch or dinner favourites for the current hour."""
    hour = now.hour
    if 6 <= hour < 11:
        keywords, reason, message, priority, confidence = (
            BREAKFAST_KEYWORDS, "Perfect for breakfast",
            "Start your day right with our breakfast favorites!", 7, 0.8,
        )
    elif 11 <= hour < 15:
        keywords, reason, message, priority, confidence = (
            LUNCH_KEYWORDS, "Great for lunch", "Try our popular lunch options!", 6, 0.7,
        )
    elif 17 <= hour < 22:
        keywords, reason, message, priority, confidence = (
            DINNER_KEYWORDS, "Perfect for dinner", "Enjoy our dinner specialties!", 6, 0.7,
        )
    else:
        return []

    items = _suggest([i for i in context.available_menu_items() if _name_has(i, keywords)], reason, 2)
    if not items:
        return []
    return [
        RecommendationSuggestion(
            type=SuggestionType.POPULAR,
            priority=priority,
            message=message,
            items=items,
            confidence=confidence,
        )
    ]


def dietary(context: ActionContext, now: datetime) -> List[RecommendationSuggestion]:
    """Match dietary words in the conversation against menu dietary tags."""
    conversation_text = " ".join(msg.content.lower() for msg in context.conversation_history)
    if not conversation_text:
        return []

    suggestions = []
    for diet, (keywords, tag_fragment) in DIETARY_KEYWORDS.items():
        if not any(keyword in conversation_text for keyword in keywords):
            continue
        matching = [
            item
            for item in context.available_menu_items()
            if any(tag_fragment in tag.lower() for tag in item.dietary_tags)
        ]
        items = _suggest(matching, f"Perfect for {diet} preferences", 3)
        if items:
            suggestions.append(
                RecommendationSuggestion(
                    type=SuggestionType.DIETARY,
                    priority=9,
                    message=f"I noticed you mentioned {diet} preferences. Here are some great options!",
                    items=items,
                    confidence=0.9,
                )
            )
    return suggestions


def popularity(context: ActionContext, now: datetime) -> List[RecommendationSuggestion]:
    """Suggest crowd favourites that are not on the order yet."""
    ordered_ids = {line.menu_item_id for line in context.current_order}
    candidates = [
        item
        for item in context.available_menu_items()
        if _name_has(item, POPULAR_KEYWORDS) and item.id not in ordered_ids
    ]
    items = _suggest(candidates, "Customer favorite", 2)
    if not items:
        return []
    return [
        RecommendationSuggestion(
            type=SuggestionType.POPULAR,
            priority=5,
            message="Try our most popular dishes!",
            items=items,
            confidence=0.6,
        )
    ]


def upgrades(context: ActionContext, now: datetime) -> List[RecommendationSuggestion]:
    """Suggest a pricier variant of something already ordered."""
    suggestions = []
    menu = context.available_menu_items()
    for line in context.current_order:
        ordered_name = line.name.lower()
        premium = [
            item
            for item in menu
            if ordered_name in item.name.lower()
            and item.price > line.unit_price
            and item.id != line.menu_item_id
        ]
        items = _suggest(premium, f"Upgrade from {line.name}", 1)
        if items:
            suggestions.append(
                RecommendationSuggestion(
                    type=SuggestionType.UPGRADE,
                    priority=4,
                    message=f"Would you like to upgrade your {line.name}?",
                    items=items,
                    confidence=0.5,
                )
            )
    return suggestions


DEFAULT_GENERATORS: Sequence[Generator] = (
    complementary_items,
    time_of_day,
    dietary,
    popularity,
    upgrades,
)


class RecommendationEngine:
    """Aggregates and ranks suggestions from independent generators."""

    def __init__(
        self,
        generators: Sequence[Generator] = DEFAULT_GENERATORS,
        max_results: int = 3,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.generators = tuple(generators)
        self.max_results = max_results
        self.clock = clock or datetime.now

    def recommend(self, context: ActionContext) -> List[RecommendationSuggestion]:
        """
        Generate personalized recommendations.

        Returns:
            Top suggestions by priority x confidence, highest first
        """
        now = self.clock()
        suggestions: List[RecommendationSuggestion] = []
        for generator in self.generators:
            suggestions.extend(generator(context, now))

        # sorted() is stable, so ties keep generator order
        ranked = sorted(suggestions, key=lambda s: s.score, reverse=True)[: self.max_results]
        logger.debug(
            f"[RECOMMEND] {len(suggestions)} candidate suggestion(s), returning "
            f"{[s.type.value for s in ranked]}"
        )
        return ranked
