"""Confirmation protocol: buttons, response interpretation and resolution."""
import logging
import re
from enum import Enum
from typing import List, Optional, Pattern

from pydantic import BaseModel

from intent_engine.services.actions.fallbacks import FallbackResponse, RejectionHandler
from intent_engine.services.actions.models import ActionButton, ActionType, EditSubAction, PendingAction
from intent_engine.services.context.models import ActionContext

logger = logging.getLogger(__name__)

POSITIVE_RESPONSES = [
    "yes", "yeah", "yep", "sure", "ok", "okay", "do it",
    "go ahead", "proceed", "confirm", "add it", "place it",
]
NEGATIVE_RESPONSES = [
    "no", "nah", "nope", "don't", "cancel", "stop",
    "decline", "skip", "not now",
]
MODIFY_RESPONSES = ["change", "modify", "edit", "different", "instead"]


class ResponseKind(str, Enum):
    CONFIRM = "confirm"
    DECLINE = "decline"
    MODIFY = "modify"
    NONE = "none"


class Resolution(BaseModel):
    """Outcome of applying a customer response to a pending action."""

    action_id: str
    outcome: ResponseKind
    selected_option: Optional[str] = None
    follow_up: Optional[FallbackResponse] = None

    @property
    def accepted(self) -> bool:
        return self.outcome == ResponseKind.CONFIRM


def _phrase_pattern(phrases: List[str]) -> Pattern[str]:
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b")


POSITIVE_PATTERN = _phrase_pattern(POSITIVE_RESPONSES)
NEGATIVE_PATTERN = _phrase_pattern(NEGATIVE_RESPONSES)
MODIFY_PATTERN = _phrase_pattern(MODIFY_RESPONSES)


def interpret_response(text: str) -> ResponseKind:
    """
    Classify a reply to a confirmation prompt.

    Whole words only, so "know" is not read as "no". When a reply mixes
    signals the earliest one wins: "yes, cancel it" confirms and
    "no, go ahead" declines.
    """
    message = (text or "").lower().strip()
    if not message:
        return ResponseKind.NONE

    earliest = None
    for kind, pattern in (
        (ResponseKind.CONFIRM, POSITIVE_PATTERN),
        (ResponseKind.DECLINE, NEGATIVE_PATTERN),
        (ResponseKind.MODIFY, MODIFY_PATTERN),
    ):
        match = pattern.search(message)
        if match and (earliest is None or match.start() < earliest[0]):
            earliest = (match.start(), kind)

    return earliest[1] if earliest else ResponseKind.NONE


def is_action_response(text: str) -> bool:
    """True when the reply confirms or declines something."""
    return interpret_response(text) in (ResponseKind.CONFIRM, ResponseKind.DECLINE)


def is_positive_response(text: str) -> bool:
    return interpret_response(text) == ResponseKind.CONFIRM


def _button(action: PendingAction, kind: str, label: str, variant: str) -> ActionButton:
    return ActionButton(id=f"{kind}_{action.id}", label=label, variant=variant, action=kind)


def generate_action_buttons(action: PendingAction) -> List[ActionButton]:
    """Buttons to render next to the confirmation prompt of an action."""
    if action.type == ActionType.ADD_TO_ORDER:
        return [
            _button(action, "confirm", "Add to Order", "success"),
            _button(action, "decline", "No Thanks", "danger"),
            ActionButton(
                id=f"alternatives_{action.id}",
                label="Show alternatives",
                variant="secondary",
                action="custom",
                custom_action="show_alternatives",
            ),
        ]

    if action.type == ActionType.CONFIRM_ORDER:
        return [
            _button(action, "confirm", "Place Order", "success"),
            _button(action, "modify", "Modify Order", "secondary"),
            _button(action, "decline", "Cancel", "danger"),
        ]

    if action.type == ActionType.EDIT_ORDER:
        return [
            _button(action, "confirm", "Show My Orders", "primary"),
            _button(action, "decline", "Never Mind", "secondary"),
        ]

    if action.type == ActionType.SPECIFIC_ORDER_EDIT:
        sub_action = action.data.action_type
        if sub_action == EditSubAction.CANCEL_ORDER:
            return [
                _button(action, "confirm", "Yes, Cancel Order", "danger"),
                _button(action, "decline", "Keep Order", "success"),
            ]
        if sub_action in (EditSubAction.MODIFY_QUANTITY, EditSubAction.REMOVE_ITEM):
            return [
                _button(action, "confirm", "Make Change", "success"),
                _button(action, "decline", "Keep Original", "secondary"),
            ]
        return [
            _button(action, "confirm", "Edit This Order", "primary"),
            _button(action, "decline", "Back to Orders", "secondary"),
        ]

    if action.type == ActionType.MODIFY_ORDER_ITEM:
        return [
            _button(action, "confirm", "Save Changes", "success"),
            _button(action, "decline", "Cancel Changes", "secondary"),
        ]

    if action.type == ActionType.REQUEST_CLARIFICATION:
        return [
            ActionButton(
                id=f"option_{action.id}_{index}",
                label=option,
                variant="primary",
                action="custom",
                custom_action=option,
            )
            for index, option in enumerate(action.data.options)
        ]

    if not action.requires_confirmation:
        return []

    return [
        _button(action, "confirm", "Yes, do it", "success"),
        _button(action, "decline", "No, don't", "danger"),
    ]


def _from_button_id(action: PendingAction, response: str) -> Optional[Resolution]:
    """Resolve a clicked button id such as "confirm_<action id>"."""
    suffix = f"_{action.id}"
    if response.endswith(suffix):
        kind = response[: -len(suffix)]
        if kind == "alternatives":
            return Resolution(action_id=action.id, outcome=ResponseKind.MODIFY, selected_option="show_alternatives")
        if kind in ("confirm", "decline", "modify"):
            return Resolution(action_id=action.id, outcome=ResponseKind(kind))

    option_prefix = f"option_{action.id}_"
    if response.startswith(option_prefix) and action.type == ActionType.REQUEST_CLARIFICATION:
        index = response[len(option_prefix):]
        if index.isdigit() and int(index) < len(action.data.options):
            return Resolution(
                action_id=action.id,
                outcome=ResponseKind.CONFIRM,
                selected_option=action.data.options[int(index)],
            )
    return None


def resolve(
    action: PendingAction,
    response: str,
    context: ActionContext,
    rejection_handler: Optional[RejectionHandler] = None,
) -> Resolution:
    """
    Apply a customer response (free text or a button id) to a pending action.

    A decline carries the fallback response to show next.
    """
    resolution = _from_button_id(action, response.strip())
    if resolution is None:
        outcome = interpret_response(response)
        selected = None
        if action.type == ActionType.REQUEST_CLARIFICATION:
            lowered = response.lower()
            selected = next((o for o in action.data.options if o.lower() in lowered), None)
            if selected is not None and outcome == ResponseKind.NONE:
                outcome = ResponseKind.CONFIRM
        resolution = Resolution(action_id=action.id, outcome=outcome, selected_option=selected)

    if resolution.outcome == ResponseKind.DECLINE:
        handler = rejection_handler or RejectionHandler()
        resolution = resolution.model_copy(update={"follow_up": handler.handle(action, context)})

    logger.info(f"[CONFIRM] Action {action.id} ({action.type.value}) resolved as {resolution.outcome.value}")
    return resolution
