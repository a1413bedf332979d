"""Recommendation endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from intent_engine.api.context import ContextRequest, build_context
from intent_engine.core.dependencies import get_engine, get_menu_repository
from intent_engine.core.errors import InvalidContextError
from intent_engine.services.actions.models import PendingAction
from intent_engine.services.engine import ActionIntentEngine
from intent_engine.services.menu.repository import MenuRepository
from intent_engine.services.recommendations.models import RecommendationSuggestion

router = APIRouter()
logger = logging.getLogger(__name__)


class RecommendationRequest(BaseModel):
    context: ContextRequest = Field(default_factory=ContextRequest)
    upsell: bool = False  # also wrap the suggestions in a confirmable action


class RecommendationResponse(BaseModel):
    suggestions: List[RecommendationSuggestion]
    action: Optional[PendingAction] = None


@router.post("/api/recommendations", response_model=RecommendationResponse)
async def recommend(
    body: RecommendationRequest,
    engine: ActionIntentEngine = Depends(get_engine),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Ranked suggestions for the current order and conversation."""
    try:
        context = await build_context(body.context, menu_repository)
        suggestions = engine.recommend(context)
        action = engine.build_upsell_action(context) if body.upsell else None
        logger.info(f"[RECOMMEND] {len(suggestions)} suggestion(s), upsell action: {action is not None}")
        return RecommendationResponse(suggestions=suggestions, action=action)
    except InvalidContextError as e:
        logger.warning(f"[RECOMMEND] Invalid context: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(
            f"[RECOMMEND] Error generating recommendations - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error generating recommendations: {str(e)}")
