"""Pattern-based intent classification."""
import logging
from typing import Sequence

from intent_engine.services.intent.categories import IntentCategory, MessageRole
from intent_engine.services.intent.patterns import (
    ASSISTANT_RULES,
    NEW_ORDER_GUARDS,
    USER_RULES,
    IntentRule,
)

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Lower-case and trim a message before matching."""
    return (text or "").strip().lower()


def is_new_order_request(text: str) -> bool:
    """Check whether a message has the shape of a first-time order request."""
    normalized = normalize(text)
    return any(guard.search(normalized) for guard in NEW_ORDER_GUARDS)


class IntentClassifier:
    """Assigns one intent category to a chat turn.

    Assistant-authored and user-authored text are matched against separate
    rule families. Within a family the first matching rule wins.
    """

    def __init__(
        self,
        assistant_rules: Sequence[IntentRule] = ASSISTANT_RULES,
        user_rules: Sequence[IntentRule] = USER_RULES,
    ):
        self.assistant_rules = tuple(assistant_rules)
        self.user_rules = tuple(user_rules)

    def rules_for(self, assistant_authored: bool) -> Sequence[IntentRule]:
        return self.assistant_rules if assistant_authored else self.user_rules

    def classify(self, text: str, assistant_authored: bool) -> IntentCategory:
        """
        Classify a message.

        Args:
            text: Raw chat turn
            assistant_authored: True for assistant messages, False for customer messages

        Returns:
            The first matching category, or IntentCategory.NONE
        """
        normalized = normalize(text)
        if not normalized:
            return IntentCategory.NONE

        for rule in self.rules_for(assistant_authored):
            if rule.matches(normalized):
                logger.debug(
                    f"[CLASSIFIER] {'assistant' if assistant_authored else 'user'} message "
                    f"classified as {rule.category.value}"
                )
                return rule.category

        return IntentCategory.NONE

    def classify_role(self, text: str, role: MessageRole) -> IntentCategory:
        """Classify using a MessageRole instead of a flag."""
        return self.classify(text, assistant_authored=MessageRole(role) == MessageRole.ASSISTANT)

    def is_specific_order_edit(self, text: str, assistant_authored: bool = False) -> bool:
        """Check only the specific order-edit rule (including its new-order guard)."""
        normalized = normalize(text)
        for rule in self.rules_for(assistant_authored):
            if rule.category == IntentCategory.SPECIFIC_ORDER_EDIT:
                return rule.matches(normalized)
        return False
