"""Multi-factor confidence scoring for proposed actions."""
import logging
import re
from datetime import datetime
from typing import Callable, List, Optional

from intent_engine.services.confidence import factors as f
from intent_engine.services.confidence.history import AccuracyHistoryStore, InMemoryAccuracyHistory
from intent_engine.services.confidence.models import (
    ConfidenceFactors,
    ConfidenceMetrics,
    RecommendedAction,
    Thresholds,
)
from intent_engine.services.context.models import ActionContext, UpsellAggressiveness
from intent_engine.services.intent.categories import IntentCategory
from intent_engine.services.intent.patterns import HEDGING_WORDS

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = {
    IntentCategory.CHECK_ORDER: 0.9,
    IntentCategory.NONE: 0.9,
    IntentCategory.SPECIFIC_ORDER_EDIT: 0.85,
    IntentCategory.CONFIRM_ORDER: 0.8,
    IntentCategory.REQUEST_RECOMMENDATION: 0.8,
    IntentCategory.ADD_TO_ORDER: 0.75,
    IntentCategory.REMOVE_FROM_ORDER: 0.7,
    IntentCategory.EDIT_ORDER: 0.7,
    IntentCategory.MODIFY_ORDER_ITEM: 0.7,
    IntentCategory.REQUEST_CLARIFICATION: 0.6,
}
UNKNOWN_BASE_CONFIDENCE = 0.5

# Group weights applied to each group's deviation from the 0.5 midpoint
CLARITY_WEIGHT = 0.25
CONTEXT_WEIGHT = 0.35
PAYLOAD_WEIGHT = 0.25
EXTERNAL_WEIGHT = 0.15
MIDPOINT = 0.5

BASE_THRESHOLDS = Thresholds(proceed=0.8, clarify=0.6, fallback=0.4)

HEDGING_PATTERN = re.compile(r"\b(?:" + "|".join(re.escape(w) for w in HEDGING_WORDS) + r")\b")


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def base_confidence(category: IntentCategory, fields: dict, payload_given: bool = True) -> float:
    """Category prior, nudged by whether the payload is complete and how rich it is."""
    confidence = BASE_CONFIDENCE.get(category, UNKNOWN_BASE_CONFIDENCE)
    if payload_given:
        if f.has_required_fields(category, fields):
            confidence += 0.1
        else:
            confidence -= 0.2
        confidence += min(0.1, len(fields) * 0.02)
    return _clamp(confidence, 0.1, 1.0)


def blend(base: float, factors: ConfidenceFactors) -> float:
    """Nudge the base confidence by the four weighted factor groups."""
    clarity = (
        factors.message_length * 0.2
        + factors.keyword_matches * 0.3
        + factors.grammar_quality * 0.2
        + factors.intent_clarity * 0.3
    )
    contextual = (
        factors.conversation_flow * 0.3
        + factors.session_history * 0.2
        + factors.menu_item_match * 0.3
        + factors.customer_profile * 0.2
    )
    payload = (
        factors.function_consistency * 0.4
        + factors.parameter_completeness * 0.3
        + factors.response_coherence * 0.3
    )
    external = (
        factors.time_of_day * 0.3
        + factors.restaurant_busyness * 0.3
        + factors.previous_accuracy * 0.4
    )

    adjusted = base
    adjusted += (clarity - MIDPOINT) * CLARITY_WEIGHT
    adjusted += (contextual - MIDPOINT) * CONTEXT_WEIGHT
    adjusted += (payload - MIDPOINT) * PAYLOAD_WEIGHT
    adjusted += (external - MIDPOINT) * EXTERNAL_WEIGHT
    return _clamp(adjusted)


def uncertainty_indicators(text: str, factors: ConfidenceFactors) -> List[str]:
    indicators = []
    if factors.message_length < 0.3:
        indicators.append("Message too short for clear intent")
    if factors.grammar_quality < 0.4:
        indicators.append("Poor grammar or unclear phrasing")
    if factors.intent_clarity < 0.5:
        indicators.append("Ambiguous customer intent")
    if factors.menu_item_match < 0.3:
        indicators.append("Requested items not clearly matching menu")
    if factors.conversation_flow < 0.4:
        indicators.append("Response doesn't fit conversation flow")
    if factors.parameter_completeness < 0.6:
        indicators.append("Action is missing key parameters")
    if factors.function_consistency < 0.5:
        indicators.append("Action choice inconsistent with message")
    if HEDGING_PATTERN.search(text.lower()):
        indicators.append("Customer expressed uncertainty")
    return indicators


def reliability(factors: ConfidenceFactors, indicators: List[str]) -> float:
    key_factors = [
        factors.intent_clarity,
        factors.function_consistency,
        factors.parameter_completeness,
        factors.menu_item_match,
    ]
    score = sum(key_factors) / len(key_factors)
    score -= 0.1 * len(indicators)
    if factors.conversation_flow > 0.8:
        score += 0.1
    if factors.previous_accuracy > 0.8:
        score += 0.1
    return _clamp(score)


def decide(confidence: float, reliability_score: float, indicators: List[str]) -> RecommendedAction:
    """Three-way decision. The cut-offs are fixed; context thresholds are advisory."""
    if confidence > 0.8 and reliability_score > 0.7 and not indicators:
        return RecommendedAction.PROCEED
    if confidence < 0.4 or reliability_score < 0.3 or len(indicators) > 3:
        return RecommendedAction.FALLBACK
    return RecommendedAction.CLARIFY


class ConfidenceScorer:
    """
    Scores how far a proposed action can be trusted.

    The only state is the injected accuracy history; everything else is
    computed from the call's inputs.
    """

    def __init__(
        self,
        history: Optional[AccuracyHistoryStore] = None,
        neutral_accuracy: float = 0.7,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.history = history if history is not None else InMemoryAccuracyHistory()
        self.neutral_accuracy = neutral_accuracy
        self.clock = clock or datetime.now

    def historical_accuracy(self, session_id: str) -> float:
        """Rolling success rate for a session; neutral when nothing is recorded."""
        if not session_id:
            return self.neutral_accuracy
        accuracy = self.history.accuracy(session_id)
        return self.neutral_accuracy if accuracy is None else accuracy

    def compute_factors(
        self,
        text: str,
        category: IntentCategory,
        payload: f.Payload,
        context: Optional[ActionContext],
    ) -> ConfidenceFactors:
        fields = f.payload_fields(payload)
        now = self.clock()
        return ConfidenceFactors(
            message_length=f.message_length(text),
            keyword_matches=f.keyword_matches(text, category),
            grammar_quality=f.grammar_quality(text),
            intent_clarity=f.intent_clarity(text, category),
            conversation_flow=f.conversation_flow(text, context),
            session_history=f.session_history(context, now),
            menu_item_match=f.menu_item_match(fields, context),
            customer_profile=f.customer_profile(context),
            function_consistency=f.function_consistency(category, fields),
            parameter_completeness=f.parameter_completeness(category, fields),
            response_coherence=f.response_coherence(text, fields),
            time_of_day=f.time_of_day(now),
            restaurant_busyness=f.restaurant_busyness(context),
            previous_accuracy=self.historical_accuracy(context.session_id if context else ""),
        )

    def score(
        self,
        text: str,
        category: IntentCategory,
        payload: f.Payload = None,
        context: Optional[ActionContext] = None,
        response_latency_ms: float = 0,
    ) -> ConfidenceMetrics:
        """
        Score a proposed action.

        Never raises for missing context: absent signals fall back to
        neutral factor values.

        Args:
            text: The chat turn the action was built from
            category: Intent category of the action
            payload: Action payload (model or plain mapping), or None
            context: Snapshot for this turn, if any
            response_latency_ms: Time the host took to produce the action

        Returns:
            ConfidenceMetrics with the recommended next step
        """
        text = text or ""
        category = IntentCategory(category)
        fields = f.payload_fields(payload)

        factors = self.compute_factors(text, category, payload, context)
        base = base_confidence(category, fields, payload_given=payload is not None)
        adjusted = blend(base, factors)
        indicators = uncertainty_indicators(text, factors)
        reliability_score = reliability(factors, indicators)
        decision = decide(adjusted, reliability_score, indicators)

        logger.info(
            f"[SCORER] {category.value}: base={base:.2f} adjusted={adjusted:.2f} "
            f"reliability={reliability_score:.2f} indicators={len(indicators)} "
            f"latency={response_latency_ms:.0f}ms -> {decision.value}"
        )
        return ConfidenceMetrics(
            base_confidence=base,
            adjusted_confidence=adjusted,
            factors=factors,
            uncertainty_indicators=indicators,
            reliability_score=reliability_score,
            recommended_action=decision,
        )

    def thresholds(self, context: Optional[ActionContext] = None) -> Thresholds:
        """Context-adjusted thresholds for hosts that want their own cut-offs."""
        proceed = BASE_THRESHOLDS.proceed
        clarify = BASE_THRESHOLDS.clarify
        fallback = BASE_THRESHOLDS.fallback

        if context is not None:
            # regulars get more benefit of the doubt
            if context.customer_session and context.customer_session.total_orders > 3:
                proceed -= 0.1
                clarify -= 0.1
            # open orders make edits riskier
            if context.current_orders:
                proceed += 0.1
                clarify += 0.1
            settings = context.restaurant_settings
            if settings is not None:
                if settings.upsell_aggressiveness == UpsellAggressiveness.HIGH:
                    proceed += 0.05
                elif settings.upsell_aggressiveness == UpsellAggressiveness.LOW:
                    proceed -= 0.05

        return Thresholds(
            proceed=round(_clamp(proceed, 0.5, 0.95), 4),
            clarify=round(_clamp(clarify, 0.3, 0.8), 4),
            fallback=round(_clamp(fallback, 0.1, 0.6), 4),
        )

    def record_outcome(self, session_id: str, predicted_confidence: float, success: bool) -> None:
        """Append a resolved outcome to the session's rolling history."""
        self.history.append(session_id, success)
        logger.info(
            f"[SCORER] Outcome for session {session_id}: success={success} "
            f"predicted={predicted_confidence:.2f} accuracy={self.historical_accuracy(session_id):.2f}"
        )

    def cleanup(self) -> int:
        """Evict idle sessions from the accuracy history."""
        return self.history.cleanup()
