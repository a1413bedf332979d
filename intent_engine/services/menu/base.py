"""Menu snapshot models and provider interface."""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MenuItemRef(BaseModel):
    """Read-only snapshot of a menu item owned by the menu store."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float
    category: str = ""
    description: Optional[str] = None
    dietary_tags: List[str] = Field(default_factory=list)
    available: bool = True


class MenuCatalog(BaseModel):
    """Menu catalog snapshot for a single restaurant."""

    model_config = ConfigDict(frozen=True)

    restaurant_id: str = ""
    items: List[MenuItemRef] = Field(default_factory=list)

    @property
    def categories(self) -> List[str]:
        """Unique categories in catalog order."""
        seen: Dict[str, None] = {}
        for item in self.items:
            if item.category:
                seen.setdefault(item.category, None)
        return list(seen)

    def available_items(self) -> List[MenuItemRef]:
        """Items that can currently be ordered."""
        return [item for item in self.items if item.available]

    def get(self, item_id: str) -> Optional[MenuItemRef]:
        """Look up an item by id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class MenuProvider(ABC):
    """Abstract base class for menu providers."""

    @abstractmethod
    async def get_menu(self) -> MenuCatalog:
        """Get the full menu."""
        pass

    @abstractmethod
    async def get_item_by_id(self, item_id: str) -> Optional[MenuItemRef]:
        """Get a menu item by id."""
        pass
