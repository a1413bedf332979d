"""Menu repository."""
from typing import List, Optional

from intent_engine.services.menu.base import MenuCatalog, MenuItemRef, MenuProvider


class MenuRepository:
    """Repository for menu snapshots."""

    def __init__(self, provider: MenuProvider):
        self.provider = provider

    async def get_menu(self) -> MenuCatalog:
        """Get the full menu."""
        return await self.provider.get_menu()

    async def get_item_by_id(self, item_id: str) -> Optional[MenuItemRef]:
        """Get item by id."""
        return await self.provider.get_item_by_id(item_id)

    async def get_available_items(self) -> List[MenuItemRef]:
        """Get the items that can currently be ordered."""
        menu = await self.get_menu()
        return menu.available_items()

    async def get_menu_text(self) -> str:
        """Get menu as formatted text for logs and prompts."""
        menu = await self.get_menu()
        lines = ["Menu:"]
        for category in menu.categories:
            lines.append(f"\n{category.title()}:")
            for item in menu.items:
                if item.category == category:
                    tags_str = f" [{', '.join(item.dietary_tags)}]" if item.dietary_tags else ""
                    status_str = "" if item.available else " (unavailable)"
                    lines.append(f"  - {item.name} ${item.price:.2f}{tags_str}{status_str}")
        return "\n".join(lines)
