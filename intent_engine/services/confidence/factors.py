"""Individual confidence factors.

Every function here is pure and looks at a narrow slice of the inputs. All
return a value in [0, 1]; missing context yields a neutral value rather than
an error.
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Pattern, Union

from pydantic import BaseModel

from intent_engine.services.context.models import ActionContext
from intent_engine.services.intent.categories import IntentCategory

Payload = Union[BaseModel, Mapping[str, Any], None]

REQUIRED_FIELDS: Dict[IntentCategory, List[str]] = {
    IntentCategory.ADD_TO_ORDER: ["items"],
    IntentCategory.CONFIRM_ORDER: ["items"],
    IntentCategory.REMOVE_FROM_ORDER: ["items"],
    IntentCategory.MODIFY_ORDER_ITEM: ["order_id", "menu_item_id", "new_quantity"],
    IntentCategory.SPECIFIC_ORDER_EDIT: ["order_id", "action_type"],
    IntentCategory.REQUEST_CLARIFICATION: ["options"],
    IntentCategory.REQUEST_RECOMMENDATION: [],
    IntentCategory.CHECK_ORDER: [],
    IntentCategory.EDIT_ORDER: [],
    IntentCategory.NONE: [],
}

# Fields a well-formed payload may carry beyond the required ones
OPTIONAL_FIELDS: Dict[IntentCategory, List[str]] = {
    IntentCategory.ADD_TO_ORDER: ["total"],
    IntentCategory.CONFIRM_ORDER: ["total"],
    IntentCategory.REMOVE_FROM_ORDER: [],
    IntentCategory.MODIFY_ORDER_ITEM: ["item_name", "old_quantity", "unit_price", "before_after"],
    IntentCategory.SPECIFIC_ORDER_EDIT: ["order_ref", "item", "original_message"],
    IntentCategory.REQUEST_CLARIFICATION: ["original_request"],
    IntentCategory.REQUEST_RECOMMENDATION: ["context", "suggestions"],
    IntentCategory.CHECK_ORDER: ["table_number"],
    IntentCategory.EDIT_ORDER: ["table_number", "order_ids"],
    IntentCategory.NONE: [],
}

INTENT_KEYWORDS: Dict[IntentCategory, List[str]] = {
    IntentCategory.CONFIRM_ORDER: ["want", "order", "get", "have", "buy", "take"],
    IntentCategory.ADD_TO_ORDER: ["want", "add", "get", "have", "take", "also"],
    IntentCategory.EDIT_ORDER: ["change", "modify", "update", "edit", "different"],
    IntentCategory.MODIFY_ORDER_ITEM: ["change", "modify", "update", "instead", "make it"],
    IntentCategory.SPECIFIC_ORDER_EDIT: ["order", "cancel", "change", "remove", "add", "edit"],
    IntentCategory.REMOVE_FROM_ORDER: ["cancel", "remove", "delete", "nevermind"],
    IntentCategory.CHECK_ORDER: ["status", "ready", "how long", "when"],
    IntentCategory.REQUEST_RECOMMENDATION: ["recommend", "suggest", "best", "popular", "good"],
    IntentCategory.REQUEST_CLARIFICATION: ["what", "how", "which", "tell me", "mean"],
}

CLEAR_INTENT_PATTERNS: Dict[IntentCategory, Pattern[str]] = {
    IntentCategory.CONFIRM_ORDER: re.compile(r"\b(i want|give me|can i get|i'll have|order|place)\b"),
    IntentCategory.ADD_TO_ORDER: re.compile(r"\b(i want|give me|can i get|i'll have|add|also)\b"),
    IntentCategory.EDIT_ORDER: re.compile(r"\b(change|modify|edit|update|instead)\b"),
    IntentCategory.MODIFY_ORDER_ITEM: re.compile(r"\b(change|modify|edit|update|instead|make it)\b"),
    IntentCategory.SPECIFIC_ORDER_EDIT: re.compile(r"#[a-z0-9]{6}\b|\b(cancel|remove|delete|this one|that one)\b"),
    IntentCategory.REMOVE_FROM_ORDER: re.compile(r"\b(cancel|remove|delete|nevermind|take off)\b"),
    IntentCategory.CHECK_ORDER: re.compile(r"\b(status|ready|how long|my order)\b"),
    IntentCategory.REQUEST_RECOMMENDATION: re.compile(r"\b(recommend|suggest|what's good|popular)\b"),
    IntentCategory.REQUEST_CLARIFICATION: re.compile(r"\b(what is|tell me|how much|which one|what do you mean)\b"),
}

FIVE_MINUTES = 300


def payload_fields(payload: Payload) -> Dict[str, Any]:
    """Payload as a plain dict of its provided (non-None) fields, without the tag."""
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        data = payload.model_dump()
    else:
        data = dict(payload)
    data.pop("kind", None)
    return {key: value for key, value in data.items() if value is not None}


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, dict, str)):
        return len(value) > 0
    return True


def has_required_fields(category: IntentCategory, fields: Mapping[str, Any]) -> bool:
    return all(_present(fields.get(name)) for name in REQUIRED_FIELDS.get(category, []))


def message_length(text: str) -> float:
    length = len(text.strip())
    if length < 5:
        return 0.1
    if length < 15:
        return 0.4
    if length < 50:
        return 0.8
    if length < 100:
        return 1.0
    # very long messages tend to bundle several requests
    return 0.9


def keyword_matches(text: str, category: IntentCategory) -> float:
    keywords = INTENT_KEYWORDS.get(category, [])
    lowered = text.lower()
    matches = sum(1 for keyword in keywords if keyword in lowered)
    return min(1.0, matches / max(1.0, len(keywords) * 0.5))


def grammar_quality(text: str) -> float:
    words = text.split()
    if not words:
        return 0.5

    score = 0.5
    if re.search(r"[A-Z]", text):
        score += 0.1
    if re.search(r"[.!?]", text):
        score += 0.1
    average_word_length = len("".join(words)) / len(words)
    if 3 < average_word_length < 8:
        score += 0.2
    if len(words) > 2:
        score += 0.1
    return min(1.0, score)


def intent_clarity(text: str, category: IntentCategory) -> float:
    pattern = CLEAR_INTENT_PATTERNS.get(category)
    return 0.9 if pattern is not None and pattern.search(text.lower()) else 0.5


def conversation_flow(text: str, context: Optional[ActionContext]) -> float:
    """Does this turn read as a natural follow-up to the previous one."""
    if context is None or not context.conversation_history:
        return 0.7

    last = context.last_message().content.lower()
    current = text.lower()
    if "recommend" in last and "yes" in current:
        return 0.9
    if "order" in last and "confirm" in current:
        return 0.9
    if "would you like" in last and ("yes" in current or "no" in current):
        return 0.8
    return 0.6


def _elapsed_seconds(now: datetime, start: datetime) -> float:
    if now.tzinfo is None and start.tzinfo is not None:
        now = now.astimezone()
    elif now.tzinfo is not None and start.tzinfo is None:
        start = start.replace(tzinfo=now.tzinfo)
    return (now - start).total_seconds()


def session_history(context: Optional[ActionContext], now: datetime) -> float:
    if context is None or context.customer_session is None:
        return 0.5

    session = context.customer_session
    score = 0.5
    if session.total_orders > 0:
        score += 0.2
    if session.total_orders > 2:
        score += 0.2
    if session.start_time is not None and _elapsed_seconds(now, session.start_time) > FIVE_MINUTES:
        score += 0.1
    return min(1.0, score)


def _requested_item_ids(fields: Mapping[str, Any]) -> List[str]:
    items = fields.get("items")
    if items:
        return [item.get("menu_item_id") for item in items if isinstance(item, Mapping)]
    if fields.get("menu_item_id"):
        return [fields["menu_item_id"]]
    return []


def menu_item_match(fields: Mapping[str, Any], context: Optional[ActionContext]) -> float:
    """Fraction of requested items that exist in the catalog."""
    requested = _requested_item_ids(fields)
    if not requested or context is None:
        return 0.5
    known = {item.id for item in context.menu_items}
    return sum(1 for item_id in requested if item_id in known) / len(requested)


def customer_profile(context: Optional[ActionContext]) -> float:
    score = 0.3
    if context is None:
        return score
    session = context.customer_session
    if session is not None and session.customer_name:
        score += 0.2
    if session is not None and session.total_orders > 0:
        score += 0.3
    if len(context.conversation_history) > 2:
        score += 0.2
    return min(1.0, score)


def function_consistency(category: IntentCategory, fields: Mapping[str, Any]) -> float:
    """Does the payload have the shape its category expects."""
    required = REQUIRED_FIELDS.get(category, [])
    known = set(required) | set(OPTIONAL_FIELDS.get(category, []))
    has_all_required = has_required_fields(category, fields)
    has_unexpected = any(name not in known for name in fields)

    if has_all_required and not has_unexpected:
        return 1.0
    if has_all_required:
        return 0.8
    return 0.4


def parameter_completeness(category: IntentCategory, fields: Mapping[str, Any]) -> float:
    required = REQUIRED_FIELDS.get(category, [])
    if not required:
        return 1.0
    return sum(1 for name in required if _present(fields.get(name))) / len(required)


def response_coherence(text: str, fields: Mapping[str, Any]) -> float:
    """Long messages should produce rich payloads and short ones should not."""
    if len(text) > 50 and len(fields) < 2:
        return 0.4
    if len(text) < 20 and len(fields) > 4:
        return 0.5
    return 0.8


def time_of_day(now: datetime) -> float:
    # lunch and dinner rush produce more mistakes
    hour = now.hour
    if 11 <= hour <= 14 or 17 <= hour <= 21:
        return 0.7
    return 0.8


def restaurant_busyness(context: Optional[ActionContext]) -> float:
    order_count = len(context.current_orders) if context is not None else 0
    if order_count == 0:
        return 0.9
    if order_count < 3:
        return 0.8
    if order_count < 5:
        return 0.7
    return 0.6
