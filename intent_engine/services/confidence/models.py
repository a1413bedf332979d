"""Confidence scoring models."""
from enum import Enum
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field


class RecommendedAction(str, Enum):
    """What the host should do with a scored action."""

    PROCEED = "proceed"
    CLARIFY = "clarify"
    FALLBACK = "fallback"


UnitFloat = Annotated[float, Field(ge=0.0, le=1.0)]


class ConfidenceFactors(BaseModel):
    """Fourteen independent sub-scores, each in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    # Message clarity
    message_length: UnitFloat
    keyword_matches: UnitFloat
    grammar_quality: UnitFloat
    intent_clarity: UnitFloat

    # Context
    conversation_flow: UnitFloat
    session_history: UnitFloat
    menu_item_match: UnitFloat
    customer_profile: UnitFloat

    # Payload quality
    function_consistency: UnitFloat
    parameter_completeness: UnitFloat
    response_coherence: UnitFloat

    # External
    time_of_day: UnitFloat
    restaurant_busyness: UnitFloat
    previous_accuracy: UnitFloat


class ConfidenceMetrics(BaseModel):
    """Scored view of one proposed action."""

    model_config = ConfigDict(frozen=True)

    base_confidence: float
    adjusted_confidence: float
    factors: ConfidenceFactors
    uncertainty_indicators: List[str] = Field(default_factory=list)
    reliability_score: float
    recommended_action: RecommendedAction


class Thresholds(BaseModel):
    """Context-adjusted decision thresholds. Advisory only."""

    model_config = ConfigDict(frozen=True)

    proceed: float
    clarify: float
    fallback: float
