"""Pattern tables for intent classification.

Each family is an ordered tuple of rules. Order encodes precedence: the
first rule that matches decides the category. Patterns run against the
lower-cased, stripped message.
"""
import re
from dataclasses import dataclass
from typing import Pattern, Sequence, Tuple

from intent_engine.services.intent.categories import IntentCategory


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class IntentRule:
    """A category with the patterns that select it and the guards that veto it."""

    category: IntentCategory
    patterns: Tuple[Pattern[str], ...]
    guards: Tuple[Pattern[str], ...] = ()

    def vetoed(self, text: str) -> bool:
        return any(guard.search(text) for guard in self.guards)

    def matches(self, text: str) -> bool:
        if self.vetoed(text):
            return False
        return any(pattern.search(text) for pattern in self.patterns)


# Six-character order code: "#abc123" or a bare token that contains a digit.
# Requiring a digit keeps words like "burger" or "cheese" from reading as codes.
ORDER_CODE = r"(?:#[a-z0-9]{6}|(?=[a-z]*\d)[a-z0-9]{6})\b"

# A count, as opposed to a code that starts with a digit ("order 4f2a9c").
COUNT = r"(?![a-z0-9]{6}\b)\d+\b"

# "i want to cancel order #abc123" leads with a request verb but names an order.
EDIT_OF_NAMED_ORDER = (
    rf"\s*to\s+(?:cancel|change|modify|edit|remove|update)\b.*(?:#[a-z0-9]{{6}}\b|\b{ORDER_CODE})"
)

# A first-time order request ("i want 2 ...", "give me ...") is never an edit of
# an earlier order, even when it happens to contain something code-shaped.
NEW_ORDER_GUARDS = _compile(
    rf"\b(i want|i'd like|i would like|i'll have|can i get|could i get|give me|i'll take|order)\s+{COUNT}",
    rf"\b(want|like|have|get|take)\s+{COUNT}",
    rf"^(give me|i want|i'd like)\s+(?!{EDIT_OF_NAMED_ORDER})",
    r"^(let me have|let's get|let's have)\s+",
)

USER_SPECIFIC_EDIT_PATTERNS = _compile(
    # Direct order references with #
    r"\b(edit|modify|change|update|cancel|add\s+to|remove\s+from)\s+order\s*#[a-z0-9]+",
    r"\border\s*#[a-z0-9]+\s*(edit|modify|change|update|cancel|add|remove)",
    r"#[a-z0-9]+\s*(edit|modify|change|update|cancel|add|remove)",
    # Selecting an order from a list
    r"\b(this|that|the\s+first|the\s+second|the\s+third|the\s+last)\s+one\b",
    r"\b(select|choose|pick)\s+(this|that|order|#[a-z0-9]+)",
    r"\border\s+(this|that|#[a-z0-9]+)",
    # Bare order code typed on its own
    r"^(?=[a-z]*\d)[a-z0-9]{6}$",
    r"^\s*#[a-z0-9]{6}\s*$",
    # Cancel / drop with an order code
    rf"\b(cancel|remove|delete)\s+(order\s+)?{ORDER_CODE}",
    rf"\b(don't\s+want|no\s+longer\s+want)\s+(order\s+)?{ORDER_CODE}",
    # Corrections that mention the order
    r"\b(actually|wait|sorry|mistake|wrong)\b.*\b(order|change|modify|cancel)",
    r"\bi\s+(changed\s+my\s+mind|made\s+a\s+mistake|want\s+to\s+change)",
    # Natural editing requests
    r"\b(remove|delete)\s+.+\s+from\s+(my\s+|the\s+)?order\b",
    r"\b(add|include)\s+.+\s+to\s+(my\s+|the\s+)?order\b",
    r"\b(change|modify|update)\s+(my\s+|the\s+)?order\b",
    r"\bcan\s+you\s+(change|modify|update|edit)\b",
    # Quantity corrections
    r"\b(make\s+it|change\s+to|instead\s+of)\s+\d+",
    r"\b(more|less|fewer)\s+(of\s+)?(that|this|the)\b",
)

USER_EDIT_PATTERNS = _compile(
    r"\b(change|modify|edit|update|alter)\s+(my\s+)?order\b",
    r"\b(cancel|remove|delete)\s+(my\s+)?order\b",
    r"\b(remove|delete)\s+.+\s+from\s+(my\s+)?order\b",
    r"\b(add|include)\s+.+\s+to\s+(my\s+)?order\b",
    r"\bcan\s+(i|we)\s+(modify|change|edit|update|cancel)\b",
    r"\bis\s+it\s+possible\s+to\s+(modify|change|edit|update|cancel)\b",
    r"\bhow\s+(do|can)\s+i\s+(modify|change|edit|update|cancel)\b",
    r"\bi\s+(want|need|would\s+like)\s+to\s+(modify|change|edit|update|cancel)\b",
    r"\blet\s+me\s+(modify|change|edit|update|cancel)\b",
    r"\bplease\s+(modify|change|edit|update|cancel)\b",
    r"\bactually\s+(i|we)\s+(want|need|would\s+like)\b",
    r"\bwait\s*,?\s*(i|we)\s+(want|need|would\s+like)\b",
    r"\bsorry\s*,?\s*(i|we)\s+(want|need|would\s+like)\b",
    r"\bmistake\b",
    r"\bwrong\b",
)

USER_CONFIRM_PATTERNS = _compile(
    r"\b(place|submit|send)\s+(my\s+|the\s+)?order\b",
    r"\bconfirm\s+(my\s+|the\s+)?order\b",
    r"\bthat'?s\s+(all|everything|it)\b",
    r"\bi'?m\s+(done|finished)\s+ordering\b",
)

USER_ADD_PATTERNS = _compile(
    r"\b(i want|i'd like|i would like|i'll have|i will have|can i get|could i get|may i have|give me|i'll take|let me get|let me have)\b",
    r"\badd\s+(a|an|some|another|\d+|one|two|three|four|five|six|seven|eight|nine|ten)\b",
    r"\b(also|and)\s+(a|an|\d+)\s+\w+",
)

USER_REMOVE_PATTERNS = _compile(
    r"\b(remove|drop|delete)\s+(the\s+|a\s+|an\s+|\d+\s+)?[a-z]",
    r"\btake\s+(off|out)\b",
    r"\bi\s+don'?t\s+want\s+(the|a|an|any)\b",
    r"\bno\s+more\s+[a-z]",
)

USER_CLARIFICATION_PATTERNS = _compile(
    r"\bwhat\s+do\s+you\s+mean\b",
    r"\bwhat\s+(kinds?|types?|options)\s+(of|are|do)\b",
    r"\bwhich\s+(one|ones|kinds?|types?)\b",
    r"\bwhat\s+are\s+(the|my)\s+(options|choices)\b",
)

USER_RECOMMENDATION_PATTERNS = _compile(
    r"\b(recommend|recommendation|suggest|suggestion)s?\b",
    r"\bwhat'?s\s+(good|popular|best)\b",
    r"\bwhat\s+should\s+i\s+(get|order|have|try)\b",
    r"\b(chef'?s?|daily|today'?s)\s+specials?\b",
    r"\bmost\s+popular\b",
)

CHECK_ORDER_PATTERNS = _compile(
    r"check.*order",
    r"show.*order",
    r"recent.*order",
    r"my.*order",
    r"order.*status",
    r"what.*ordered",
    r"order.*history",
)

ASSISTANT_SPECIFIC_EDIT_PATTERNS = _compile(
    r"\b(edit|modify|change|update|cancel|add\s+to|remove\s+from)\s+order\s*#[a-z0-9]+",
    r"\border\s*#[a-z0-9]+\s*(edit|modify|change|update|cancel|add|remove)",
    r"\b(add|remove|cancel|update|modify|change)\b.*\border\s*#[a-z0-9]{6}\b",
    rf"\b(cancel|remove|delete)\s+(order\s+)?{ORDER_CODE}",
)

ASSISTANT_EDIT_PATTERNS = _compile(
    r"\b(modify|change|edit|update|cancel)\s+(your|an\s+existing)\s+order\b",
    r"\bshow\s+you\s+your\s+orders?\s+so\s+you\s+can\b",
    r"\bwhich\s+order\s+would\s+you\s+like\s+to\s+(modify|change|edit|update|cancel)\b",
)

ASSISTANT_CONFIRM_PATTERNS = _compile(
    r"i'll place.*order",
    r"shall i place",
    r"ready to order",
    r"confirm.*order",
    r"total.*\$[\d.]+",
    r"place.*order.*for you",
)

ASSISTANT_ADD_PATTERNS = _compile(
    r"i'll add",
    r"add.*to.*order",
    r"shall i add",
    r"would you like.*add",
    r"adding.*to.*order",
)

ASSISTANT_REMOVE_PATTERNS = _compile(
    r"remove.*from.*order",
    r"shall i remove",
    r"take.*off.*order",
    r"delete.*from.*order",
)

ASSISTANT_CLARIFICATION_PATTERNS = _compile(
    r"which.*did you mean",
    r"found.*options",
    r"which one",
    r"clarify",
    r"multiple.*choices",
)

ASSISTANT_RECOMMENDATION_PATTERNS = _compile(
    r"would you like.*recommend",
    r"i recommend",
    r"suggest",
    r"popular.*items",
    r"chef.*special",
)

USER_RULES: Sequence[IntentRule] = (
    IntentRule(IntentCategory.SPECIFIC_ORDER_EDIT, USER_SPECIFIC_EDIT_PATTERNS, guards=NEW_ORDER_GUARDS),
    IntentRule(IntentCategory.EDIT_ORDER, USER_EDIT_PATTERNS),
    IntentRule(IntentCategory.CONFIRM_ORDER, USER_CONFIRM_PATTERNS),
    IntentRule(IntentCategory.ADD_TO_ORDER, USER_ADD_PATTERNS),
    IntentRule(IntentCategory.REMOVE_FROM_ORDER, USER_REMOVE_PATTERNS),
    IntentRule(IntentCategory.REQUEST_CLARIFICATION, USER_CLARIFICATION_PATTERNS),
    IntentRule(IntentCategory.REQUEST_RECOMMENDATION, USER_RECOMMENDATION_PATTERNS),
    IntentRule(IntentCategory.CHECK_ORDER, CHECK_ORDER_PATTERNS),
)

ASSISTANT_RULES: Sequence[IntentRule] = (
    IntentRule(IntentCategory.SPECIFIC_ORDER_EDIT, ASSISTANT_SPECIFIC_EDIT_PATTERNS, guards=NEW_ORDER_GUARDS),
    IntentRule(IntentCategory.EDIT_ORDER, ASSISTANT_EDIT_PATTERNS),
    IntentRule(IntentCategory.CONFIRM_ORDER, ASSISTANT_CONFIRM_PATTERNS),
    IntentRule(IntentCategory.ADD_TO_ORDER, ASSISTANT_ADD_PATTERNS),
    IntentRule(IntentCategory.REMOVE_FROM_ORDER, ASSISTANT_REMOVE_PATTERNS),
    IntentRule(IntentCategory.REQUEST_CLARIFICATION, ASSISTANT_CLARIFICATION_PATTERNS),
    IntentRule(IntentCategory.REQUEST_RECOMMENDATION, ASSISTANT_RECOMMENDATION_PATTERNS),
    IntentRule(IntentCategory.CHECK_ORDER, CHECK_ORDER_PATTERNS),
)

# Hedging phrases that lower confidence in whatever the customer asked for
HEDGING_WORDS = ["maybe", "perhaps", "not sure", "i think", "might", "possibly"]
