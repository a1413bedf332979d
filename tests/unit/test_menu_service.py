"""Unit tests for menu service and repository."""
import pytest

from intent_engine.core.errors import MenuLoadError
from intent_engine.services.menu.in_memory_menu import DEFAULT_MENU, InMemoryMenuProvider
from intent_engine.services.menu.repository import MenuRepository


class TestMenuService:
    """Test menu repository and provider."""

    @pytest.mark.asyncio
    async def test_load_menu_from_yaml(self, test_menu_repository):
        """Test loading menu from YAML file."""
        menu = await test_menu_repository.get_menu()

        # Verify items parsed correctly
        assert menu.restaurant_id == "rest-1"
        assert len(menu.items) == 7
        assert menu.items[0].name == "Margherita Pizza"
        assert menu.items[0].price == 16.99
        assert menu.items[0].dietary_tags == ["vegetarian"]

        # Verify categories extracted in catalog order
        assert menu.categories == ["pizzas", "salads", "sides", "drinks", "desserts"]

    @pytest.mark.asyncio
    async def test_menu_is_loaded_once(self, test_menu_repository):
        """Test the catalog is cached by the provider."""
        first = await test_menu_repository.get_menu()
        second = await test_menu_repository.get_menu()

        assert first is second

    @pytest.mark.asyncio
    async def test_get_item_by_id(self, test_menu_repository):
        """Test get_item_by_id returns the matching item."""
        item = await test_menu_repository.get_item_by_id("m5")

        assert item is not None
        assert item.name == "Lemonade"
        assert "gluten-free" in item.dietary_tags

    @pytest.mark.asyncio
    async def test_get_item_by_id_not_found(self, test_menu_repository):
        """Test get_item_by_id returns None for unknown ids."""
        assert await test_menu_repository.get_item_by_id("nonexistent") is None

    @pytest.mark.asyncio
    async def test_available_items(self, test_menu_repository):
        """Test unavailable items are filtered out."""
        items = await test_menu_repository.get_available_items()

        assert len(items) == 6
        assert "Tiramisu" not in [item.name for item in items]

    @pytest.mark.asyncio
    async def test_get_menu_text(self, test_menu_repository):
        """Test get_menu_text returns a formatted listing."""
        menu_text = await test_menu_repository.get_menu_text()

        assert menu_text.startswith("Menu:")
        assert "Pizzas:" in menu_text
        assert "Margherita Pizza $16.99 [vegetarian]" in menu_text
        assert "Tiramisu $8.00 (unavailable)" in menu_text

    @pytest.mark.asyncio
    async def test_missing_file_uses_default_menu(self, tmp_path):
        """Test a missing catalog file falls back to the built-in menu."""
        repository = MenuRepository(InMemoryMenuProvider(menu_file=str(tmp_path / "missing.yaml")))

        menu = await repository.get_menu()

        assert menu == DEFAULT_MENU
        assert menu.restaurant_id == "default"

    @pytest.mark.asyncio
    async def test_no_file_uses_default_menu(self):
        """Test no configured file falls back to the built-in menu."""
        menu = await MenuRepository(InMemoryMenuProvider()).get_menu()
        assert len(menu.items) == len(DEFAULT_MENU.items)

    @pytest.mark.asyncio
    async def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises MenuLoadError."""
        menu_file = tmp_path / "broken.yaml"
        menu_file.write_text("items:\n  - [unclosed\n")

        repository = MenuRepository(InMemoryMenuProvider(menu_file=str(menu_file)))

        with pytest.raises(MenuLoadError):
            await repository.get_menu()

    @pytest.mark.asyncio
    async def test_empty_file(self, tmp_path):
        """Test an empty catalog file yields an empty menu."""
        menu_file = tmp_path / "empty.yaml"
        menu_file.write_text("")

        menu = await MenuRepository(InMemoryMenuProvider(menu_file=str(menu_file))).get_menu()

        assert menu.items == []
        assert menu.categories == []
