"""Unit tests for intent classification."""
import pytest

from intent_engine.services.intent.categories import IntentCategory, MessageRole
from intent_engine.services.intent.classifier import is_new_order_request


class TestUserClassification:
    """Test customer-authored messages."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I'll have 2 margherita pizzas", IntentCategory.ADD_TO_ORDER),
            ("Can I get a lemonade?", IntentCategory.ADD_TO_ORDER),
            ("remove the garlic bread", IntentCategory.REMOVE_FROM_ORDER),
            ("That's all, place my order", IntentCategory.CONFIRM_ORDER),
            ("What do you recommend?", IntentCategory.REQUEST_RECOMMENDATION),
            ("What kinds of pizza are there?", IntentCategory.REQUEST_CLARIFICATION),
            ("Show me my order", IntentCategory.CHECK_ORDER),
            ("I want to change my order", IntentCategory.EDIT_ORDER),
            ("cancel order #def456", IntentCategory.SPECIFIC_ORDER_EDIT),
            ("the first one", IntentCategory.SPECIFIC_ORDER_EDIT),
            ("abc123", IntentCategory.SPECIFIC_ORDER_EDIT),
            ("make it 3", IntentCategory.SPECIFIC_ORDER_EDIT),
        ],
    )
    def test_categories(self, classifier, text, expected):
        """Test representative phrasings for each category."""
        assert classifier.classify(text, assistant_authored=False) == expected

    def test_conversational_text_is_none(self, classifier):
        """Test small talk produces no intent."""
        assert classifier.classify("hello there", assistant_authored=False) == IntentCategory.NONE
        assert classifier.classify("burger", assistant_authored=False) == IntentCategory.NONE

    def test_empty_text_is_none(self, classifier):
        """Test empty and whitespace-only text."""
        assert classifier.classify("", assistant_authored=False) == IntentCategory.NONE
        assert classifier.classify("   ", assistant_authored=False) == IntentCategory.NONE

    def test_specific_edit_wins_over_generic_edit(self, classifier):
        """Test a message matching both edit families resolves to the specific one."""
        text = "please cancel order #abc123"
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.SPECIFIC_ORDER_EDIT


class TestNewOrderGuard:
    """Test that first-time order requests are never read as order edits."""

    def test_new_order_with_code_shaped_token(self, classifier):
        """Test "I want 2 pizzas abc123" stays an add."""
        text = "I want 2 pizzas abc123"

        assert classifier.is_specific_order_edit(text) is False
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.ADD_TO_ORDER

    def test_new_order_quantity_on_existing_order(self, classifier):
        """Test "I'd like 2 more pizzas on order #ABC123" is an add, not an edit."""
        text = "I'd like 2 more pizzas on order #ABC123"

        assert is_new_order_request(text) is True
        assert classifier.is_specific_order_edit(text) is False
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.ADD_TO_ORDER

    def test_new_order_with_item_names(self, classifier):
        """Test a plain numbered request is not an edit."""
        assert classifier.is_specific_order_edit("I'll have 2 margherita pizzas") is False

    def test_add_with_quantity_to_coded_order(self, classifier):
        """Test "add 2 more to order #ABC123" is still a specific edit."""
        text = "add 2 more to order #ABC123 please"

        assert is_new_order_request(text) is False
        assert classifier.is_specific_order_edit(text) is True

    def test_words_are_not_order_codes(self, classifier):
        """Test six-letter words without digits are not read as codes."""
        assert classifier.is_specific_order_edit("cancel cheese") is False
        assert classifier.is_specific_order_edit("burger") is False

    def test_generic_edit_request_skips_guarded_rule(self, classifier):
        """Test "I want to ..." requests fall through to the generic edit rule."""
        text = "I want to cancel"
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.EDIT_ORDER

    @pytest.mark.parametrize(
        "text",
        [
            "I want to cancel order #ABC123",
            "I'd like to cancel order #ABC123",
            "i want  to change order #abc123",
            "I want to cancel 4f2a9c",
        ],
    )
    def test_request_verb_naming_an_order_is_a_specific_edit(self, classifier, text):
        """Test "I want to <edit verb>" with an order code is not vetoed."""
        assert is_new_order_request(text) is False
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.SPECIFIC_ORDER_EDIT

    @pytest.mark.parametrize("text", ["cancel order 4f2a9c", "cancel order 123456", "remove order 9abc12"])
    def test_code_starting_with_digit_is_not_a_quantity(self, classifier, text):
        """Test a code that starts with a digit is not read as "order <count>"."""
        assert is_new_order_request(text) is False
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.SPECIFIC_ORDER_EDIT

    def test_large_counts_still_guarded(self, classifier):
        """Test multi-digit counts still read as a new order request."""
        assert is_new_order_request("I'd like 100 wings") is True
        assert is_new_order_request("order 12 pizzas") is True

    def test_generic_change_request_stays_generic(self, classifier):
        """Test "I want to change my order" without a code is a generic edit."""
        text = "I want to change my order"
        assert classifier.classify(text, assistant_authored=False) == IntentCategory.EDIT_ORDER


class TestAssistantClassification:
    """Test assistant-authored messages."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I'll add 2 Caesar Salad to your order.", IntentCategory.ADD_TO_ORDER),
            ("Shall I place this order for you? Total: $33.98", IntentCategory.CONFIRM_ORDER),
            ("I recommend our Margherita Pizza", IntentCategory.REQUEST_RECOMMENDATION),
            ("Shall I remove the garlic bread?", IntentCategory.REMOVE_FROM_ORDER),
            ("I found a few options. Which one did you mean?", IntentCategory.REQUEST_CLARIFICATION),
            ("I can cancel order #ABC123 for you", IntentCategory.SPECIFIC_ORDER_EDIT),
            ("Which order would you like to modify?", IntentCategory.EDIT_ORDER),
        ],
    )
    def test_categories(self, classifier, text, expected):
        """Test representative assistant phrasings."""
        assert classifier.classify(text, assistant_authored=True) == expected

    def test_role_selects_family(self, classifier):
        """Test the same text is classified differently per role."""
        text = "I recommend our Margherita Pizza"

        assert classifier.classify_role(text, MessageRole.ASSISTANT) == IntentCategory.REQUEST_RECOMMENDATION
        assert classifier.classify_role(text, "user") == IntentCategory.REQUEST_RECOMMENDATION
        assert classifier.classify_role("I'll add it", MessageRole.ASSISTANT) == IntentCategory.ADD_TO_ORDER
        assert classifier.classify_role("I'll add it", MessageRole.USER) == IntentCategory.NONE
