"""Item extraction from free chat text."""
import logging
import re
from typing import Callable, List, Optional, Sequence

from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.menu.base import MenuItemRef

logger = logging.getLogger(__name__)

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

PLURAL_QUANTITY = 2

QuantityExtractor = Callable[[str, str], Optional[int]]


def numeral_quantity(text: str, item_name: str) -> Optional[int]:
    """'2 caesar salads' -> 2."""
    match = re.search(rf"\b(\d+)\s+{re.escape(item_name)}", text)
    if match:
        quantity = int(match.group(1))
        if quantity >= 1:
            return quantity
    return None


def word_quantity(text: str, item_name: str) -> Optional[int]:
    """'two caesar salads' -> 2."""
    words = "|".join(NUMBER_WORDS)
    match = re.search(rf"\b({words})\s+{re.escape(item_name)}", text)
    if match:
        return NUMBER_WORDS[match.group(1)]
    return None


def plural_quantity(text: str, item_name: str) -> Optional[int]:
    """'caesar salads' with no explicit count implies two."""
    if re.search(rf"{re.escape(item_name)}(?:s|es)\b", text):
        return PLURAL_QUANTITY
    return None


def explicit_zero(text: str, item_name: str) -> bool:
    """'0 caesar salads' or 'zero caesar salads': the item is named but not wanted."""
    return re.search(rf"\b(?:0+|zero)\s+{re.escape(item_name)}", text) is not None


# Tried in order, first non-None wins
QUANTITY_EXTRACTORS: Sequence[QuantityExtractor] = (
    numeral_quantity,
    word_quantity,
    plural_quantity,
)


def extract_quantity(
    text: str,
    item_name: str,
    extractors: Sequence[QuantityExtractor] = QUANTITY_EXTRACTORS,
) -> int:
    """Run the quantity extractors in priority order, defaulting to 1."""
    for extractor in extractors:
        quantity = extractor(text, item_name)
        if quantity is not None:
            return quantity
    return 1


def _blank(text: str, fragment: str) -> str:
    """Replace every occurrence of fragment with spaces, keeping offsets."""
    return text.replace(fragment, " " * len(fragment))


def extract_items(text: str, menu_items: Sequence[MenuItemRef]) -> List[ParsedOrderItem]:
    """
    Extract order-item mentions from text.

    Catalog names are matched longest first and a matched name is blanked
    out of the working text, so "pizza" is not counted again inside
    "margherita pizza".

    Args:
        text: Chat turn to analyse
        menu_items: Catalog snapshot, already filtered by the caller

    Returns:
        One ParsedOrderItem per matched catalog entry, in catalog order
    """
    working = text.lower()
    matched = {}

    # sorted() is stable, so equal-length names keep caller order
    for menu_item in sorted(menu_items, key=lambda m: len(m.name), reverse=True):
        item_name = menu_item.name.lower().strip()
        if not item_name or item_name not in working:
            continue

        if explicit_zero(working, item_name):
            logger.debug(f"[EXTRACTOR] Skipping {menu_item.name}: quantity is zero")
            working = _blank(working, item_name)
            continue

        quantity = extract_quantity(working, item_name)
        matched[menu_item.id] = ParsedOrderItem(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            quantity=quantity,
            unit_price=float(menu_item.price),
        )
        working = _blank(working, item_name)

    items = []
    for menu_item in menu_items:
        parsed = matched.pop(menu_item.id, None)
        if parsed is not None:
            items.append(parsed)

    if items:
        logger.debug(
            f"[EXTRACTOR] Extracted {len(items)} item(s): "
            + ", ".join(f"{i.quantity}x {i.name}" for i in items)
        )
    return items
