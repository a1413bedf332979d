"""Shared test fixtures and configuration."""
from datetime import datetime
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from intent_engine.main import app
from intent_engine.core.dependencies import get_engine, get_menu_repository
from intent_engine.services.actions.builder import ActionBuilder
from intent_engine.services.actions.registry import PendingActionRegistry
from intent_engine.services.confidence.history import InMemoryAccuracyHistory
from intent_engine.services.confidence.scorer import ConfidenceScorer
from intent_engine.services.context.models import (
    ActionContext,
    ConversationMessage,
    CustomerSession,
    OpenOrder,
    OpenOrderLine,
)
from intent_engine.services.engine import ActionIntentEngine
from intent_engine.services.intent.classifier import IntentClassifier
from intent_engine.services.menu.base import MenuItemRef
from intent_engine.services.menu.in_memory_menu import InMemoryMenuProvider
from intent_engine.services.menu.repository import MenuRepository
from intent_engine.services.recommendations.engine import RecommendationEngine

# 15:30 falls between the lunch and dinner buckets, so time-of-day
# suggestions stay out of tests that do not ask for them
FIXED_NOW = datetime(2024, 5, 14, 15, 30)

TEST_MENU = {
    "restaurant_id": "rest-1",
    "items": [
        {
            "id": "m1",
            "name": "Margherita Pizza",
            "price": 16.99,
            "category": "pizzas",
            "dietary_tags": ["vegetarian"],
        },
        {
            "id": "m2",
            "name": "Pepperoni Pizza",
            "price": 18.49,
            "category": "pizzas",
        },
        {
            "id": "m3",
            "name": "Caesar Salad",
            "price": 12.99,
            "category": "salads",
            "dietary_tags": ["vegetarian"],
        },
        {
            "id": "m4",
            "name": "Garlic Bread",
            "price": 5.49,
            "category": "sides",
            "dietary_tags": ["vegan"],
        },
        {
            "id": "m5",
            "name": "Lemonade",
            "price": 3.99,
            "category": "drinks",
            "dietary_tags": ["vegan", "gluten-free"],
        },
        {
            "id": "m6",
            "name": "Chocolate Cake",
            "price": 7.50,
            "category": "desserts",
        },
        {
            "id": "m7",
            "name": "Tiramisu",
            "price": 8.00,
            "category": "desserts",
            "available": False,
        },
    ],
}


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def menu_items():
    """Catalog snapshot matching the test menu file."""
    return [MenuItemRef(**item) for item in TEST_MENU["items"]]


@pytest.fixture
def context(menu_items):
    """Minimal context for a fresh table."""
    return ActionContext(restaurant_id="rest-1", table_number=4, menu_items=menu_items)


@pytest.fixture
def session_context(menu_items):
    """Context with a customer session, history and one open order."""
    return ActionContext(
        restaurant_id="rest-1",
        table_number=4,
        menu_items=menu_items,
        conversation_history=[
            ConversationMessage(role="user", content="Hi there"),
            ConversationMessage(role="assistant", content="Welcome! What would you like to order?"),
        ],
        customer_session=CustomerSession(id="sess-1", customer_name="Sam", total_orders=1),
        current_orders=[
            OpenOrder(
                id="order_9f8e7d6c5b4a",
                status="PENDING",
                items=[OpenOrderLine(menu_item_id="m1", name="Margherita Pizza", quantity=1, price=16.99)],
            )
        ],
    )


@pytest.fixture
def recommendation_engine(fixed_clock):
    return RecommendationEngine(clock=fixed_clock)


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def builder(recommendation_engine):
    return ActionBuilder(recommendation_engine)


@pytest.fixture
def scorer(fixed_clock):
    return ConfidenceScorer(history=InMemoryAccuracyHistory(window=20), clock=fixed_clock)


@pytest.fixture
def engine(recommendation_engine, scorer):
    """Fresh engine per test with deterministic clocks."""
    return ActionIntentEngine(
        recommendations=recommendation_engine,
        scorer=scorer,
        registry=PendingActionRegistry(ttl_minutes=30),
    )


@pytest.fixture
def test_menu_path():
    """Return path to test menu YAML file."""
    return Path(__file__).parent / "fixtures" / "test_menu.yaml"


@pytest.fixture
def test_menu_repository(test_menu_path):
    """Create menu repository with test data."""
    provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
    return MenuRepository(provider)


@pytest.fixture
def override_get_menu_repository(test_menu_repository):
    """Override get_menu_repository dependency with test menu."""
    def _override_get_menu_repository():
        return test_menu_repository
    return _override_get_menu_repository


@pytest.fixture
def test_client(override_get_menu_repository, engine):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_menu_repository] = override_get_menu_repository
    app.dependency_overrides[get_engine] = lambda: engine

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_menu_file(test_menu_path):
    """Restore the test menu YAML before and after every test."""
    test_menu_path.parent.mkdir(parents=True, exist_ok=True)

    with open(test_menu_path, "w") as f:
        yaml.safe_dump(TEST_MENU, f, default_flow_style=False, sort_keys=False)

    yield

    with open(test_menu_path, "w") as f:
        yaml.safe_dump(TEST_MENU, f, default_flow_style=False, sort_keys=False)
