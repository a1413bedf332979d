"""Action-intent engine facade."""
import logging
import threading
from collections import Counter
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from intent_engine.core.errors import InvalidContextError
from intent_engine.services.actions.builder import ActionBuilder, create_recommendation_action
from intent_engine.services.actions.confirmation import Resolution, ResponseKind, generate_action_buttons, resolve
from intent_engine.services.actions.fallbacks import RejectionHandler
from intent_engine.services.actions.models import ActionButton, PendingAction
from intent_engine.services.actions.registry import PendingActionRegistry
from intent_engine.services.confidence.models import ConfidenceMetrics, RecommendedAction, Thresholds
from intent_engine.services.confidence.scorer import ConfidenceScorer
from intent_engine.services.context.models import ActionContext, UpsellAggressiveness
from intent_engine.services.intent.categories import IntentCategory, MessageRole
from intent_engine.services.intent.classifier import IntentClassifier
from intent_engine.services.recommendations.engine import RecommendationEngine
from intent_engine.services.recommendations.models import RecommendationSuggestion

logger = logging.getLogger(__name__)

# How many of the ranked suggestions an upsell shows, by restaurant setting
UPSELL_SUGGESTIONS = {
    UpsellAggressiveness.LOW: 1,
    UpsellAggressiveness.MEDIUM: 2,
    UpsellAggressiveness.HIGH: 3,
}


class StatsSnapshot(BaseModel):
    """Point-in-time view of the engine's decision counters."""

    decisions: int = 0
    actions_built: int = 0
    scored: int = 0
    outcomes: int = 0
    success_rate: float = 0.0
    average_confidence: float = 0.0
    fallback_rate: float = 0.0
    intents: Dict[str, int] = Field(default_factory=dict)


class DecisionStats:
    """Process-local decision counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._decisions = 0
        self._actions_built = 0
        self._scored = 0
        self._confidence_sum = 0.0
        self._fallbacks = 0
        self._outcomes = 0
        self._successes = 0
        self._intents: Counter = Counter()

    def record_decision(self, category: IntentCategory, built: bool) -> None:
        with self._lock:
            self._decisions += 1
            self._intents[category.value] += 1
            if built:
                self._actions_built += 1

    def record_score(self, metrics: ConfidenceMetrics) -> None:
        with self._lock:
            self._scored += 1
            self._confidence_sum += metrics.adjusted_confidence
            if metrics.recommended_action == RecommendedAction.FALLBACK:
                self._fallbacks += 1

    def record_outcome(self, success: bool) -> None:
        with self._lock:
            self._outcomes += 1
            if success:
                self._successes += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                decisions=self._decisions,
                actions_built=self._actions_built,
                scored=self._scored,
                outcomes=self._outcomes,
                success_rate=self._successes / self._outcomes if self._outcomes else 0.0,
                average_confidence=self._confidence_sum / self._scored if self._scored else 0.0,
                fallback_rate=self._fallbacks / self._scored if self._scored else 0.0,
                intents=dict(self._intents),
            )


class Detection(BaseModel):
    """Everything a host needs to present one detected action."""

    action: Optional[PendingAction] = None
    metrics: ConfidenceMetrics
    buttons: List[ActionButton] = Field(default_factory=list)
    thresholds: Thresholds


class ActionIntentEngine:
    """
    Turns chat turns into scored, confirmable actions.

    Collaborators are injected so hosts can swap the accuracy history store
    or the recommendation generators without touching the engine.
    """

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        recommendations: Optional[RecommendationEngine] = None,
        builder: Optional[ActionBuilder] = None,
        scorer: Optional[ConfidenceScorer] = None,
        registry: Optional[PendingActionRegistry] = None,
    ):
        self.classifier = classifier or IntentClassifier()
        self.recommendations = recommendations or RecommendationEngine()
        self.builder = builder or ActionBuilder(self.recommendations)
        self.scorer = scorer or ConfidenceScorer()
        self.registry = registry or PendingActionRegistry()
        self.rejections = RejectionHandler(self.recommendations)
        self.decision_stats = DecisionStats()

    def classify_and_build_action(
        self, text: str, role: MessageRole, context: ActionContext
    ) -> Optional[PendingAction]:
        """
        Classify a chat turn and build the matching action.

        Args:
            text: The chat turn
            role: Who wrote it; selects the pattern family
            context: Read-only snapshot for this turn

        Returns:
            The proposed action, or None when the turn is conversational
        """
        if context is None or not context.restaurant_id:
            raise InvalidContextError("A restaurant id is required to build actions")

        category = self.classifier.classify_role(text, role)
        action = None
        if category != IntentCategory.NONE:
            action = self.builder.build(category, text, context)

        self.decision_stats.record_decision(category, action is not None)
        logger.info(
            f"[ENGINE] {MessageRole(role).value} turn -> {category.value}, "
            f"action={action.type.value + ' ' + action.id if action else 'none'}"
        )
        return action

    def score_action(
        self,
        text: str,
        action: Optional[PendingAction],
        context: Optional[ActionContext] = None,
        latency_ms: float = 0,
    ) -> ConfidenceMetrics:
        """Score a built action, or the absence of one."""
        if action is None:
            metrics = self.scorer.score(text, IntentCategory.NONE, None, context, latency_ms)
        else:
            metrics = self.scorer.score(text, action.type.category, action.data, context, latency_ms)
        self.decision_stats.record_score(metrics)
        return metrics

    def record_outcome(self, session_id: str, predicted_confidence: float, success: bool) -> None:
        """Feed a resolved action's outcome back into the session's accuracy history."""
        if not session_id:
            raise InvalidContextError("A session id is required to record outcomes")
        self.scorer.record_outcome(session_id, predicted_confidence, success)
        self.decision_stats.record_outcome(success)
        logger.info(f"[ENGINE] Outcome recorded for session {session_id}: success={success}")

    def recommend(self, context: ActionContext) -> List[RecommendationSuggestion]:
        return self.recommendations.recommend(context)

    def thresholds(self, context: Optional[ActionContext] = None) -> Thresholds:
        return self.scorer.thresholds(context)

    def stats(self) -> StatsSnapshot:
        return self.decision_stats.snapshot()

    def detect(
        self, text: str, role: MessageRole, context: ActionContext, latency_ms: float = 0
    ) -> Detection:
        """
        Classify, build and score a turn in one call.

        Actions that need confirmation are registered as the session's
        pending action, superseding whatever was pending before.
        """
        action = self.classify_and_build_action(text, role, context)
        metrics = self.score_action(text, action, context, latency_ms)

        buttons = []
        if action is not None:
            buttons = generate_action_buttons(action)
            if action.requires_confirmation and context.session_id:
                self.registry.register(context.session_id, action, metrics.adjusted_confidence)

        return Detection(
            action=action,
            metrics=metrics,
            buttons=buttons,
            thresholds=self.thresholds(context),
        )

    def respond(self, action_id: str, response: str, context: ActionContext) -> Resolution:
        """
        Apply the customer's reply to the session's pending action.

        A confirmation or decline resolves the action and is recorded as a
        success or failure of the prediction. Other replies leave it pending.

        Raises:
            ActionNotFoundError: If the action is unknown, superseded or expired
        """
        session_id = context.session_id
        if not session_id:
            raise InvalidContextError("A customer session is required to respond to actions")

        action = self.registry.get(session_id, action_id)
        resolution = resolve(action, response, context, self.rejections)

        if resolution.outcome in (ResponseKind.CONFIRM, ResponseKind.DECLINE):
            entry = self.registry.pop(session_id, action_id)
            predicted = entry.confidence if entry.confidence is not None else 0.0
            self.record_outcome(session_id, predicted, resolution.accepted)

        return resolution

    def build_upsell_action(self, context: ActionContext) -> Optional[PendingAction]:
        """Offer the top recommendations as a REQUEST_RECOMMENDATION action."""
        settings = context.restaurant_settings
        if settings is not None and not settings.upsell_enabled:
            return None

        suggestions = self.recommend(context)
        if not suggestions:
            return None

        aggressiveness = settings.upsell_aggressiveness if settings else UpsellAggressiveness.MEDIUM
        shown = suggestions[: UPSELL_SUGGESTIONS[aggressiveness]]
        action = create_recommendation_action(shown, "upsell", context.restaurant_id, context.table_number)
        logger.info(f"[ENGINE] Upsell action {action.id} with {len(shown)} suggestion(s)")
        return action

    def cleanup(self) -> int:
        """Evict expired pending actions and idle accuracy histories. Returns the total evicted."""
        return self.registry.cleanup() + self.scorer.cleanup()
