"""Extraction models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ParsedOrderItem(BaseModel):
    """An order-item mention extracted from chat text."""

    model_config = ConfigDict(frozen=True)

    menu_item_id: str
    name: str
    quantity: int = Field(default=1, ge=1)
    unit_price: float
    notes: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)
