"""Action cards proposed by the assistant and the registry that builds them."""

from .base import (
    ActionCard,
    ActionNotFoundError,
    ActionStateError,
    ActionValidationError,
    CardContext,
    CardEvent,
    CardOutcome,
    RecordingRouter,
)
from .registry import ACKNOWLEDGEMENTS, acknowledgement, create_card

__all__ = [
    "ACKNOWLEDGEMENTS",
    "ActionCard",
    "ActionNotFoundError",
    "ActionStateError",
    "ActionValidationError",
    "CardContext",
    "CardEvent",
    "CardOutcome",
    "RecordingRouter",
    "acknowledgement",
    "create_card",
]
