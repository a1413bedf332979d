"""Action detection, scoring and confirmation endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from intent_engine.api.context import ContextRequest, build_context
from intent_engine.core.dependencies import get_engine, get_menu_repository
from intent_engine.core.errors import ActionNotFoundError, InvalidContextError
from intent_engine.services.actions.confirmation import Resolution
from intent_engine.services.actions.models import PendingAction
from intent_engine.services.confidence.models import ConfidenceMetrics
from intent_engine.services.engine import ActionIntentEngine, Detection, StatsSnapshot
from intent_engine.services.intent.categories import MessageRole
from intent_engine.services.menu.repository import MenuRepository

router = APIRouter(prefix="/api/actions")
logger = logging.getLogger(__name__)


class DetectRequest(BaseModel):
    text: str
    role: MessageRole = MessageRole.USER
    context: ContextRequest = Field(default_factory=ContextRequest)
    latency_ms: float = 0


class ScoreRequest(BaseModel):
    text: str
    action: Optional[PendingAction] = None
    context: Optional[ContextRequest] = None
    latency_ms: float = 0


class OutcomeRequest(BaseModel):
    session_id: str
    predicted_confidence: float = Field(ge=0.0, le=1.0)
    success: bool


class OutcomeResponse(BaseModel):
    status: str = "recorded"
    session_id: str
    historical_accuracy: float


class RespondRequest(BaseModel):
    action_id: str
    response: str
    context: ContextRequest = Field(default_factory=ContextRequest)


@router.post("/detect", response_model=Detection)
async def detect_action(
    body: DetectRequest,
    engine: ActionIntentEngine = Depends(get_engine),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Classify a chat turn, build its action and score it."""
    logger.info(f"[ACTIONS] Detect request - role: {body.role.value}, text: '{body.text[:80]}'")
    try:
        context = await build_context(body.context, menu_repository)
        return engine.detect(body.text, body.role, context, body.latency_ms)
    except InvalidContextError as e:
        logger.warning(f"[ACTIONS] Invalid context: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"[ACTIONS] Error detecting action - Error: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error detecting action: {str(e)}")


@router.post("/score", response_model=ConfidenceMetrics)
async def score_action(
    body: ScoreRequest,
    engine: ActionIntentEngine = Depends(get_engine),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Score an already built action (or no action) against a turn."""
    try:
        context = await build_context(body.context, menu_repository) if body.context else None
        return engine.score_action(body.text, body.action, context, body.latency_ms)
    except InvalidContextError as e:
        logger.warning(f"[ACTIONS] Invalid context: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"[ACTIONS] Error scoring action - Error: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error scoring action: {str(e)}")


@router.post("/outcome", response_model=OutcomeResponse)
async def record_outcome(body: OutcomeRequest, engine: ActionIntentEngine = Depends(get_engine)):
    """Report whether an executed action did what the customer wanted."""
    try:
        engine.record_outcome(body.session_id, body.predicted_confidence, body.success)
    except InvalidContextError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return OutcomeResponse(
        session_id=body.session_id,
        historical_accuracy=engine.scorer.historical_accuracy(body.session_id),
    )


@router.post("/respond", response_model=Resolution)
async def respond_to_action(
    body: RespondRequest,
    engine: ActionIntentEngine = Depends(get_engine),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Apply the customer's reply (text or button id) to their pending action."""
    logger.info(f"[ACTIONS] Response for action {body.action_id}: '{body.response[:80]}'")
    try:
        context = await build_context(body.context, menu_repository)
        return engine.respond(body.action_id, body.response, context)
    except ActionNotFoundError as e:
        logger.warning(f"[ACTIONS] {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidContextError as e:
        logger.warning(f"[ACTIONS] Invalid context: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"[ACTIONS] Error resolving action - Error: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error resolving action: {str(e)}")


@router.get("/stats", response_model=StatsSnapshot)
async def get_stats(engine: ActionIntentEngine = Depends(get_engine)):
    """Process-local decision counters."""
    return engine.stats()
