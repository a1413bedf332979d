"""Pending action models.

A PendingAction is the only contract between the engine and the executor
that applies order changes, so every payload carries everything needed to
execute it without looking at the original text again.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from intent_engine.services.extraction.models import ParsedOrderItem
from intent_engine.services.intent.categories import IntentCategory
from intent_engine.services.recommendations.models import RecommendationSuggestion


class ActionType(str, Enum):
    """Closed set of actions the engine can propose."""

    ADD_TO_ORDER = "ADD_TO_ORDER"
    REMOVE_FROM_ORDER = "REMOVE_FROM_ORDER"
    CONFIRM_ORDER = "CONFIRM_ORDER"
    REQUEST_CLARIFICATION = "REQUEST_CLARIFICATION"
    REQUEST_RECOMMENDATION = "REQUEST_RECOMMENDATION"
    CHECK_ORDER = "CHECK_ORDER"
    EDIT_ORDER = "EDIT_ORDER"
    SPECIFIC_ORDER_EDIT = "SPECIFIC_ORDER_EDIT"
    MODIFY_ORDER_ITEM = "MODIFY_ORDER_ITEM"

    @property
    def category(self) -> IntentCategory:
        return IntentCategory(self.value)


class EditSubAction(str, Enum):
    """What a specific order edit does to the referenced order."""

    CANCEL_ORDER = "cancel_order"
    REMOVE_ITEM = "remove_item"
    MODIFY_QUANTITY = "modify_quantity"
    ADD_ITEM = "add_item"
    SELECT_ORDER = "select_order"


def _frozen() -> ConfigDict:
    return ConfigDict(frozen=True)


class AddToOrderPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["ADD_TO_ORDER"] = "ADD_TO_ORDER"
    items: List[ParsedOrderItem] = Field(min_length=1)
    total: float


class ConfirmOrderPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["CONFIRM_ORDER"] = "CONFIRM_ORDER"
    items: List[ParsedOrderItem] = Field(min_length=1)
    total: float


class RemoveFromOrderPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["REMOVE_FROM_ORDER"] = "REMOVE_FROM_ORDER"
    items: List[ParsedOrderItem] = Field(min_length=1)


class OrderSnapshot(BaseModel):
    """Quantity and total of one order line at a point in time."""

    model_config = _frozen()

    quantity: int
    total: float


class OrderDiff(BaseModel):
    model_config = _frozen()

    before: OrderSnapshot
    after: OrderSnapshot

    @property
    def price_difference(self) -> float:
        return round(self.after.total - self.before.total, 2)


class ModifyOrderItemPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["MODIFY_ORDER_ITEM"] = "MODIFY_ORDER_ITEM"
    order_id: str
    menu_item_id: str
    item_name: str
    old_quantity: int
    new_quantity: int = Field(ge=1)
    unit_price: float
    before_after: OrderDiff


class ClarificationPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["REQUEST_CLARIFICATION"] = "REQUEST_CLARIFICATION"
    original_request: str
    options: List[str] = Field(min_length=1)


class RecommendationPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["REQUEST_RECOMMENDATION"] = "REQUEST_RECOMMENDATION"
    context: str
    suggestions: List[RecommendationSuggestion] = Field(min_length=1)


class CheckOrderPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["CHECK_ORDER"] = "CHECK_ORDER"
    table_number: Optional[int] = None


class EditOrderPayload(BaseModel):
    model_config = _frozen()

    kind: Literal["EDIT_ORDER"] = "EDIT_ORDER"
    table_number: Optional[int] = None
    order_ids: List[str] = Field(default_factory=list)


class EditItem(BaseModel):
    """Item referenced by a specific order edit.

    needs_clarification is set when the item was only recognised as a food
    word and is not on the catalog, so there is no menu id or price to act on.
    """

    model_config = _frozen()

    name: str
    quantity: int = Field(default=1, ge=1)
    menu_item_id: Optional[str] = None
    unit_price: Optional[float] = None
    needs_clarification: bool = False


class SpecificOrderEditPayload(BaseModel):
    """
    order_id is the full id of the open order when the context knows it,
    otherwise the upper-cased code the customer typed. order_ref is always the
    six-character code shown back to the customer.
    """

    model_config = _frozen()

    kind: Literal["SPECIFIC_ORDER_EDIT"] = "SPECIFIC_ORDER_EDIT"
    order_id: str
    order_ref: str
    action_type: EditSubAction
    item: Optional[EditItem] = None
    original_message: str = ""


ActionPayload = Annotated[
    Union[
        AddToOrderPayload,
        ConfirmOrderPayload,
        RemoveFromOrderPayload,
        ModifyOrderItemPayload,
        ClarificationPayload,
        RecommendationPayload,
        CheckOrderPayload,
        EditOrderPayload,
        SpecificOrderEditPayload,
    ],
    Field(discriminator="kind"),
]


def new_action_id() -> str:
    """Generate a unique action id."""
    return f"action_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingAction(BaseModel):
    """A typed, unexecuted proposal awaiting the customer's decision."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_action_id)
    type: ActionType
    description: str
    data: ActionPayload
    confirmation_message: str
    requires_confirmation: bool = True
    fallback_options: List[str] = Field(min_length=1)
    restaurant_id: str
    table_number: Optional[int] = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _payload_matches_type(self) -> "PendingAction":
        if self.data.kind != self.type.value:
            raise ValueError(f"payload kind {self.data.kind} does not match action type {self.type.value}")
        return self


class ActionButton(BaseModel):
    """A selectable response rendered next to a confirmation prompt."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    variant: Literal["primary", "secondary", "danger", "success"]
    action: Literal["confirm", "decline", "modify", "custom"]
    custom_action: Optional[str] = None
