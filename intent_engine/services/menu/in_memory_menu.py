"""In-memory menu provider."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from intent_engine.core.errors import MenuLoadError
from intent_engine.services.menu.base import MenuCatalog, MenuItemRef, MenuProvider

logger = logging.getLogger(__name__)


DEFAULT_MENU = MenuCatalog(
    restaurant_id="default",
    items=[
        MenuItemRef(
            id="m1",
            name="Margherita Pizza",
            price=16.99,
            category="pizzas",
            description="Classic pizza with tomato sauce and mozzarella",
            dietary_tags=["vegetarian"],
        ),
        MenuItemRef(
            id="m2",
            name="Caesar Salad",
            price=12.99,
            category="salads",
            description="Fresh romaine lettuce with caesar dressing",
            dietary_tags=["vegetarian"],
        ),
        MenuItemRef(
            id="m3",
            name="Garlic Bread",
            price=5.49,
            category="sides",
            dietary_tags=["vegetarian"],
        ),
        MenuItemRef(
            id="m4",
            name="Lemonade",
            price=3.99,
            category="drinks",
            dietary_tags=["vegan", "gluten-free"],
        ),
        MenuItemRef(
            id="m5",
            name="Chocolate Cake",
            price=7.5,
            category="desserts",
        ),
    ],
)


class InMemoryMenuProvider(MenuProvider):
    """In-memory menu provider using YAML configuration."""

    def __init__(self, menu_file: Optional[str] = None):
        """Initialize with optional menu file path."""
        self.menu_file = Path(menu_file) if menu_file else None
        self._menu: Optional[MenuCatalog] = None

    async def _load_menu(self) -> MenuCatalog:
        """Load menu from YAML file."""
        if self._menu is None:
            if self.menu_file is None or not self.menu_file.exists():
                # Default menu if file doesn't exist
                self._menu = DEFAULT_MENU
            else:
                try:
                    with open(self.menu_file, "r") as f:
                        data = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    raise MenuLoadError(f"Could not read menu file {self.menu_file}: {e}") from e

                items = [MenuItemRef(**item) for item in data.get("items", [])]
                self._menu = MenuCatalog(
                    restaurant_id=str(data.get("restaurant_id", "")),
                    items=items,
                )
                logger.info(f"[MENU] Loaded {len(items)} items from {self.menu_file}")
        return self._menu

    async def get_menu(self) -> MenuCatalog:
        """Get the full menu."""
        return await self._load_menu()

    async def get_item_by_id(self, item_id: str) -> Optional[MenuItemRef]:
        """Get a menu item by id."""
        menu = await self._load_menu()
        return menu.get(item_id)
