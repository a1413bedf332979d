"""Unit tests for confidence scoring and accuracy history."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest

from intent_engine.services.confidence import factors as f
from intent_engine.services.confidence.history import InMemoryAccuracyHistory
from intent_engine.services.confidence.models import ConfidenceFactors, RecommendedAction
from intent_engine.services.confidence.scorer import (
    ConfidenceScorer,
    base_confidence,
    blend,
    decide,
    reliability,
)
from intent_engine.services.context.models import (
    ActionContext,
    ConversationMessage,
    CustomerSession,
    OpenOrder,
    RestaurantSettings,
    UpsellAggressiveness,
)
from intent_engine.services.intent.categories import IntentCategory

NEUTRAL = ConfidenceFactors(
    message_length=0.5,
    keyword_matches=0.5,
    grammar_quality=0.5,
    intent_clarity=0.5,
    conversation_flow=0.5,
    session_history=0.5,
    menu_item_match=0.5,
    customer_profile=0.5,
    function_consistency=0.5,
    parameter_completeness=0.5,
    response_coherence=0.5,
    time_of_day=0.5,
    restaurant_busyness=0.5,
    previous_accuracy=0.5,
)

ADD_PAYLOAD = {
    "items": [{"menu_item_id": "m1", "name": "Margherita Pizza", "quantity": 2, "unit_price": 16.99}],
    "total": 33.98,
}


class TestBaseConfidence:
    """Test the category prior and payload adjustments."""

    def test_category_priors(self):
        """Test priors without a payload."""
        assert base_confidence(IntentCategory.CHECK_ORDER, {}, payload_given=False) == 0.9
        assert base_confidence(IntentCategory.REQUEST_CLARIFICATION, {}, payload_given=False) == 0.6

    def test_complete_payload_raises_prior(self):
        """Test required fields present adds 0.1 plus 0.02 per field."""
        assert base_confidence(IntentCategory.ADD_TO_ORDER, ADD_PAYLOAD) == pytest.approx(0.89)

    def test_missing_required_field_lowers_prior(self):
        """Test missing items costs 0.2."""
        assert base_confidence(IntentCategory.ADD_TO_ORDER, {"total": 0.0}) == pytest.approx(0.57)


class TestBlend:
    """Test the weighted factor blend."""

    def test_neutral_factors_leave_base_unchanged(self):
        """Test all factors at the midpoint do not move the base."""
        assert blend(0.7, NEUTRAL) == pytest.approx(0.7)

    @pytest.mark.parametrize(
        "field",
        ["parameter_completeness", "menu_item_match", "intent_clarity", "previous_accuracy"],
    )
    def test_monotonic_in_each_factor(self, field):
        """Test raising one factor never lowers the adjusted confidence."""
        lower = NEUTRAL.model_copy(update={field: 0.2})
        higher = NEUTRAL.model_copy(update={field: 0.9})

        assert blend(0.7, higher) >= blend(0.7, lower)

    def test_clamped(self):
        """Test the result stays within [0, 1]."""
        best = NEUTRAL.model_copy(update={name: 1.0 for name in ConfidenceFactors.model_fields})
        worst = NEUTRAL.model_copy(update={name: 0.0 for name in ConfidenceFactors.model_fields})

        assert blend(1.0, best) == 1.0
        assert blend(0.1, worst) == 0.0


class TestDecision:
    """Test the three-way decision."""

    def test_low_confidence_falls_back(self):
        """Test confidence below 0.4 always falls back."""
        assert decide(0.39, 0.95, []) == RecommendedAction.FALLBACK

    def test_proceed_requires_no_indicators(self):
        """Test a single indicator downgrades to clarify."""
        assert decide(0.9, 0.9, []) == RecommendedAction.PROCEED
        assert decide(0.9, 0.9, ["Customer expressed uncertainty"]) == RecommendedAction.CLARIFY

    def test_many_indicators_fall_back(self):
        """Test more than three indicators falls back."""
        assert decide(0.7, 0.6, ["a", "b", "c", "d"]) == RecommendedAction.FALLBACK

    def test_reliability_penalises_indicators(self):
        """Test each indicator costs 0.1 reliability."""
        assert reliability(NEUTRAL, ["a", "b"]) == pytest.approx(0.3)


class TestFactors:
    """Test individual factor functions."""

    def test_message_length_buckets(self):
        assert f.message_length("hi") == 0.1
        assert f.message_length("one lemonade") == 0.4
        assert f.message_length("I'll have 2 margherita pizzas") == 0.8
        assert f.message_length("x" * 120) == 0.9

    def test_menu_item_match(self, context):
        """Test the fraction of requested ids found in the catalog."""
        fields = {"items": [{"menu_item_id": "m1"}, {"menu_item_id": "zz"}]}

        assert f.menu_item_match(fields, context) == 0.5
        assert f.menu_item_match({"items": [{"menu_item_id": "m1"}]}, context) == 1.0
        assert f.menu_item_match({}, context) == 0.5
        assert f.menu_item_match(fields, None) == 0.5

    def test_function_consistency(self):
        """Test payload shape consistency."""
        assert f.function_consistency(IntentCategory.ADD_TO_ORDER, ADD_PAYLOAD) == 1.0
        assert f.function_consistency(IntentCategory.ADD_TO_ORDER, {**ADD_PAYLOAD, "extra": 1}) == 0.8
        assert f.function_consistency(IntentCategory.ADD_TO_ORDER, {"total": 1.0}) == 0.4

    def test_time_of_day(self):
        """Test rush hours score lower."""
        assert f.time_of_day(datetime(2024, 5, 14, 12, 0)) == 0.7
        assert f.time_of_day(datetime(2024, 5, 14, 15, 30)) == 0.8

    def test_session_history(self, session_context):
        """Test returning customers score higher."""
        now = datetime(2024, 5, 14, 15, 30)

        assert f.session_history(None, now) == 0.5
        assert f.session_history(session_context, now) == pytest.approx(0.7)

    def test_conversation_flow_reads_last_message(self, context):
        """Test the follow-up score looks at the most recent turn only."""
        history = [
            ConversationMessage(role="assistant", content="I recommend the tiramisu"),
            ConversationMessage(role="assistant", content="Would you like a drink?"),
        ]
        followed_up = context.model_copy(update={"conversation_history": history})

        assert followed_up.last_message().content == "Would you like a drink?"
        assert f.conversation_flow("yes please", followed_up) == 0.8
        assert f.conversation_flow("yes please", context) == 0.7

    def test_specific_edit_payload_is_consistent(self):
        """Test the specific-edit payload with its display code counts as well formed."""
        fields = {"order_id": "order_9f8e7d6c5b4a", "order_ref": "6C5B4A", "action_type": "cancel_order"}

        assert f.function_consistency(IntentCategory.SPECIFIC_ORDER_EDIT, fields) == 1.0

    def test_payload_fields_drops_tag_and_nones(self):
        """Test models and mappings are flattened the same way."""
        assert f.payload_fields({"kind": "CHECK_ORDER", "table_number": None}) == {}
        assert f.payload_fields(None) == {}


class TestConfidenceScorer:
    """Test end-to-end scoring."""

    def test_clear_add_proceeds(self, scorer, context):
        """Test an explicit, catalog-backed add proceeds."""
        metrics = scorer.score("I'll have 2 margherita pizzas.", IntentCategory.ADD_TO_ORDER, ADD_PAYLOAD, context)

        assert metrics.base_confidence == pytest.approx(0.89)
        assert metrics.adjusted_confidence == 1.0
        assert metrics.uncertainty_indicators == []
        assert metrics.recommended_action == RecommendedAction.PROCEED

    def test_hedging_needs_clarification(self, scorer, context):
        """Test hedging words add an indicator and block proceeding."""
        metrics = scorer.score(
            "Maybe I'll have 2 margherita pizzas.", IntentCategory.ADD_TO_ORDER, ADD_PAYLOAD, context
        )

        assert "Customer expressed uncertainty" in metrics.uncertainty_indicators
        assert metrics.recommended_action == RecommendedAction.CLARIFY

    def test_vague_turn_falls_back(self, scorer):
        """Test a near-empty message with an empty payload falls back."""
        metrics = scorer.score("?", IntentCategory.ADD_TO_ORDER, {"items": []})

        assert metrics.reliability_score < 0.3
        assert metrics.recommended_action == RecommendedAction.FALLBACK

    def test_missing_context_is_neutral(self, scorer):
        """Test scoring never requires a context."""
        metrics = scorer.score("Show me my order", IntentCategory.CHECK_ORDER)

        assert metrics.factors.conversation_flow == 0.7
        assert metrics.factors.previous_accuracy == 0.7
        assert 0.0 <= metrics.adjusted_confidence <= 1.0

    def test_accepts_category_value(self, scorer):
        """Test categories may be passed by value."""
        metrics = scorer.score("Show me my order", "CHECK_ORDER")
        assert metrics.base_confidence == 0.9

    def test_history_feeds_previous_accuracy(self, scorer, session_context):
        """Test recorded outcomes change the previous-accuracy factor."""
        for _ in range(3):
            scorer.record_outcome("sess-1", 0.9, True)

        metrics = scorer.score("Show me my order", IntentCategory.CHECK_ORDER, None, session_context)

        assert metrics.factors.previous_accuracy == 1.0


class TestThresholds:
    """Test context-adjusted thresholds."""

    def test_defaults(self, scorer):
        t = scorer.thresholds()
        assert (t.proceed, t.clarify, t.fallback) == (0.8, 0.6, 0.4)

    def test_regular_customer(self, scorer):
        """Test regulars get lower thresholds."""
        context = ActionContext(restaurant_id="r", customer_session=CustomerSession(id="s", total_orders=5))

        t = scorer.thresholds(context)

        assert (t.proceed, t.clarify) == (pytest.approx(0.7), pytest.approx(0.5))

    def test_open_orders_raise_thresholds(self, scorer):
        """Test open orders make edits riskier."""
        context = ActionContext(restaurant_id="r", current_orders=[OpenOrder(id="order_abc123")])

        t = scorer.thresholds(context)

        assert (t.proceed, t.clarify) == (pytest.approx(0.9), pytest.approx(0.7))

    def test_clamped(self, scorer):
        """Test proceed never exceeds 0.95."""
        context = ActionContext(
            restaurant_id="r",
            current_orders=[OpenOrder(id="order_abc123")],
            restaurant_settings=RestaurantSettings(upsell_aggressiveness=UpsellAggressiveness.HIGH),
        )

        assert scorer.thresholds(context).proceed == pytest.approx(0.95)

    def test_low_aggressiveness(self, scorer):
        context = ActionContext(
            restaurant_id="r",
            restaurant_settings=RestaurantSettings(upsell_aggressiveness=UpsellAggressiveness.LOW),
        )
        assert scorer.thresholds(context).proceed == pytest.approx(0.75)


class TestAccuracyHistory:
    """Test the rolling per-session accuracy window."""

    def test_neutral_without_history(self, scorer):
        """Test sessions without outcomes read as 0.7."""
        assert scorer.historical_accuracy("new-session") == 0.7
        assert scorer.historical_accuracy("") == 0.7

    def test_alternating_outcomes_converge_to_half(self, scorer):
        """Test 20 alternating outcomes give exactly 0.5."""
        for i in range(20):
            scorer.record_outcome("sess-1", 0.8, i % 2 == 0)

        assert scorer.historical_accuracy("sess-1") == 0.5

    def test_window_is_capped(self):
        """Test only the last 20 outcomes count."""
        history = InMemoryAccuracyHistory(window=20)
        for _ in range(5):
            history.append("s", False)
        for _ in range(20):
            history.append("s", True)

        assert len(history.outcomes("s")) == 20
        assert history.accuracy("s") == 1.0

    def test_sessions_are_isolated(self):
        history = InMemoryAccuracyHistory()
        history.append("a", True)
        history.append("b", False)

        assert history.accuracy("a") == 1.0
        assert history.accuracy("b") == 0.0
        assert history.accuracy("c") is None

    def test_clear(self):
        history = InMemoryAccuracyHistory()
        history.append("a", True)
        history.append("b", True)

        history.clear("a")
        assert history.accuracy("a") is None
        assert history.accuracy("b") == 1.0

        history.clear()
        assert history.accuracy("b") is None

    def test_concurrent_appends(self):
        """Test parallel appends to one session lose nothing."""
        history = InMemoryAccuracyHistory(window=1000)

        def record(_):
            for _ in range(50):
                history.append("shared", True)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(record, range(8)))

        assert len(history.outcomes("shared")) == 400

    def test_concurrent_appends_respect_window(self):
        """Test the cap holds under concurrent writers."""
        history = InMemoryAccuracyHistory(window=20)

        def record(worker):
            for i in range(50):
                history.append("shared", (worker + i) % 2 == 0)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(record, range(8)))

        assert len(history.outcomes("shared")) == 20


class MovingClock:
    def __init__(self):
        self.now = datetime(2024, 5, 14, 12, 0)

    def __call__(self):
        return self.now

    def advance(self, minutes):
        self.now += timedelta(minutes=minutes)


class TestIdleSessionEviction:
    """Test idle sessions are forgotten together with their locks."""

    def test_cleanup_evicts_idle_sessions(self):
        """Test only sessions idle longer than the limit are evicted."""
        clock = MovingClock()
        history = InMemoryAccuracyHistory(idle_minutes=60, clock=clock)
        history.append("old", True)
        clock.advance(45)
        history.append("recent", False)
        clock.advance(30)

        assert history.cleanup() == 1
        assert history.accuracy("old") is None
        assert history.accuracy("recent") == 0.0
        assert history.session_count == 1
        assert history.lock_count == 1

    def test_append_refreshes_idle_timer(self):
        """Test a new outcome keeps a session alive."""
        clock = MovingClock()
        history = InMemoryAccuracyHistory(idle_minutes=60, clock=clock)
        history.append("a", True)
        clock.advance(50)
        history.append("a", True)
        clock.advance(50)

        assert history.cleanup() == 0
        assert history.outcomes("a") == [1, 1]

    def test_reads_of_unknown_sessions_leave_no_lock(self):
        """Test scoring sessions without outcomes does not grow the lock table."""
        history = InMemoryAccuracyHistory()
        for i in range(50):
            assert history.accuracy(f"sess-{i}") is None

        assert history.lock_count == 0

    def test_clear_drops_locks(self):
        """Test clear() with and without a session id forgets locks too."""
        history = InMemoryAccuracyHistory()
        history.append("a", True)
        history.append("b", True)

        history.clear("a")
        assert history.lock_count == 1

        history.clear()
        assert history.lock_count == 0
        assert history.session_count == 0

    def test_scorer_cleanup_delegates_to_history(self):
        """Test the scorer evicts through its history store."""
        clock = MovingClock()
        history = InMemoryAccuracyHistory(idle_minutes=10, clock=clock)
        scorer = ConfidenceScorer(history=history)
        scorer.record_outcome("sess-1", 0.8, True)
        clock.advance(11)

        assert scorer.cleanup() == 1
        assert scorer.historical_accuracy("sess-1") == 0.7
