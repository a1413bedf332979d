"""Engine exceptions."""


class IntentEngineError(Exception):
    """Base class for engine errors."""


class ActionNotFoundError(IntentEngineError):
    """Raised when a pending action id is unknown or has expired."""

    def __init__(self, action_id: str):
        super().__init__(f"Pending action '{action_id}' not found or expired")
        self.action_id = action_id


class InvalidContextError(IntentEngineError):
    """Raised when a request context cannot be used."""


class MenuLoadError(IntentEngineError):
    """Raised when a menu catalog file cannot be read."""
