"""
Delivery State Machine

Defines the states of a single email delivery and the transitions
allowed between them. Failures in the sending states are recoverable by
posting a diagnostic embed; a failure while posting that embed is fatal.
"""

from enum import Enum
from typing import Final

import structlog

from relay.exceptions import InvalidStateTransitionError

log = structlog.get_logger()


class DeliveryState(str, Enum):
    """
    Delivery state enum.

    States are mutually exclusive and represent the current stage
    of one invocation.
    """

    START = "START"
    """Invocation accepted, nothing sent yet."""

    SEND_PRIMARY = "SEND_PRIMARY"
    """Building and posting the primary embed."""

    SEND_CONTINUATIONS = "SEND_CONTINUATIONS"
    """Primary delivered, posting continuation embeds in order."""

    ERROR_REPORT = "ERROR_REPORT"
    """Main flow failed, posting the diagnostic embed."""

    DONE = "DONE"
    """Invocation finished (delivered, or failure reported)."""

    FATAL = "FATAL"
    """Diagnostic embed could not be delivered."""

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no outgoing transitions)."""
        return self in TERMINAL_STATES

    @property
    def is_recoverable(self) -> bool:
        """Check if a failure in this state is reported downstream."""
        return self in RECOVERABLE_STATES

    @classmethod
    def from_string(cls, value: str) -> "DeliveryState":
        """Convert string to DeliveryState enum."""
        try:
            return cls(value.upper())
        except ValueError as e:
            raise ValueError(
                f"Invalid delivery state: '{value}'. "
                f"Valid values are: {[s.value for s in cls]}"
            ) from e


TERMINAL_STATES: Final[frozenset[DeliveryState]] = frozenset({
    DeliveryState.DONE,
    DeliveryState.FATAL,
})

RECOVERABLE_STATES: Final[frozenset[DeliveryState]] = frozenset({
    DeliveryState.SEND_PRIMARY,
    DeliveryState.SEND_CONTINUATIONS,
})

# Key: current state, Value: set of allowed next states
VALID_TRANSITIONS: Final[dict[DeliveryState, frozenset[DeliveryState]]] = {
    DeliveryState.START: frozenset({
        DeliveryState.SEND_PRIMARY,
    }),
    DeliveryState.SEND_PRIMARY: frozenset({
        DeliveryState.SEND_CONTINUATIONS,
        DeliveryState.ERROR_REPORT,
    }),
    DeliveryState.SEND_CONTINUATIONS: frozenset({
        DeliveryState.DONE,
        DeliveryState.ERROR_REPORT,
    }),
    DeliveryState.ERROR_REPORT: frozenset({
        DeliveryState.DONE,
        DeliveryState.FATAL,
    }),
    DeliveryState.DONE: frozenset(),   # Terminal
    DeliveryState.FATAL: frozenset(),  # Terminal
}


def validate_transition(
    current_state: DeliveryState | str,
    new_state: DeliveryState | str,
) -> bool:
    """
    Validate that a state transition is allowed.

    Args:
        current_state: Current delivery state
        new_state: Desired next state

    Returns:
        True if transition is valid

    Raises:
        InvalidStateTransitionError: If transition is invalid
    """
    if isinstance(current_state, str):
        current_state = DeliveryState.from_string(current_state)
    if isinstance(new_state, str):
        new_state = DeliveryState.from_string(new_state)

    allowed = VALID_TRANSITIONS.get(current_state, frozenset())

    if new_state not in allowed:
        log.warning(
            "invalid_state_transition",
            current_state=current_state.value,
            new_state=new_state.value,
            allowed_transitions=sorted(s.value for s in allowed),
        )
        raise InvalidStateTransitionError(
            current_state=current_state.value,
            new_state=new_state.value,
            allowed_transitions=sorted(s.value for s in allowed),
        )

    return True
