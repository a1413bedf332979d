"""Intent category enumeration."""
from enum import Enum


class IntentCategory(str, Enum):
    """Coarse classification of what a chat turn is trying to do."""

    ADD_TO_ORDER = "ADD_TO_ORDER"
    REMOVE_FROM_ORDER = "REMOVE_FROM_ORDER"
    CONFIRM_ORDER = "CONFIRM_ORDER"
    REQUEST_CLARIFICATION = "REQUEST_CLARIFICATION"
    REQUEST_RECOMMENDATION = "REQUEST_RECOMMENDATION"
    CHECK_ORDER = "CHECK_ORDER"
    EDIT_ORDER = "EDIT_ORDER"
    SPECIFIC_ORDER_EDIT = "SPECIFIC_ORDER_EDIT"
    MODIFY_ORDER_ITEM = "MODIFY_ORDER_ITEM"
    NONE = "NONE"  # No action, respond conversationally

    def __str__(self) -> str:
        """Return the string value of the category."""
        return self.value


class MessageRole(str, Enum):
    """Who authored the chat turn."""

    ASSISTANT = "assistant"
    USER = "user"

    def __str__(self) -> str:
        return self.value
