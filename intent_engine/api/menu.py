"""Menu API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from intent_engine.core.dependencies import get_menu_repository
from intent_engine.services.menu.repository import MenuRepository

router = APIRouter()
logger = logging.getLogger(__name__)


class MenuItemResponse(BaseModel):
    """Menu item response model."""

    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: str = ""
    dietary_tags: List[str] = []
    available: bool = True


class MenuResponse(BaseModel):
    """Menu response model."""

    restaurant_id: str = ""
    items: List[MenuItemResponse]
    categories: List[str] = []


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(
    request: Request,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the default catalog used when requests carry no menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        menu = await menu_repository.get_menu()
        logger.info(f"[MENU] Menu loaded - {len(menu.items)} items, {len(menu.categories)} categories")
        return MenuResponse(
            restaurant_id=menu.restaurant_id,
            items=[MenuItemResponse(**item.model_dump()) for item in menu.items],
            categories=menu.categories,
        )

    except Exception as e:
        logger.error(
            f"[MENU] Error fetching menu - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error fetching menu: {str(e)}")
