"""Recommendation models."""
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SuggestionType(str, Enum):
    """Kind of recommendation."""

    DRINK = "drink"
    SIDE = "side"
    DESSERT = "dessert"
    UPGRADE = "upgrade"
    COMPLEMENT = "complement"
    DIETARY = "dietary"
    POPULAR = "popular"


class SuggestedItem(BaseModel):
    """A candidate menu item with the reason it is being suggested."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float
    reason: str


class RecommendationSuggestion(BaseModel):
    """A ranked suggestion produced by one recommendation generator."""

    model_config = ConfigDict(frozen=True)

    type: SuggestionType
    priority: int = Field(ge=1, le=10)
    message: str
    items: List[SuggestedItem] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def score(self) -> float:
        """Ranking key: priority weighted by confidence."""
        return self.priority * self.confidence
