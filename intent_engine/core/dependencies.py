"""FastAPI dependencies."""
from functools import lru_cache

from intent_engine.core.config import settings
from intent_engine.services.actions.registry import PendingActionRegistry
from intent_engine.services.confidence.history import InMemoryAccuracyHistory
from intent_engine.services.confidence.scorer import ConfidenceScorer
from intent_engine.services.engine import ActionIntentEngine
from intent_engine.services.menu.in_memory_menu import InMemoryMenuProvider
from intent_engine.services.menu.repository import MenuRepository
from intent_engine.services.recommendations.engine import RecommendationEngine


@lru_cache
def get_menu_provider() -> InMemoryMenuProvider:
    """Get the process-wide menu provider (the catalog is loaded once)."""
    return InMemoryMenuProvider(menu_file=settings.menu_file)


def get_menu_repository() -> MenuRepository:
    """Get menu repository instance."""
    return MenuRepository(provider=get_menu_provider())


@lru_cache
def get_engine() -> ActionIntentEngine:
    """Get the process-wide engine; accuracy history lives as long as the process."""
    return ActionIntentEngine(
        recommendations=RecommendationEngine(max_results=settings.max_recommendations),
        scorer=ConfidenceScorer(
            history=InMemoryAccuracyHistory(
                window=settings.history_window,
                idle_minutes=settings.history_idle_minutes,
            ),
            neutral_accuracy=settings.neutral_accuracy,
        ),
        registry=PendingActionRegistry(ttl_minutes=settings.action_ttl_minutes),
    )
