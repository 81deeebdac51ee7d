"""
Custom Exceptions for the Email Relay

All exceptions follow the pattern of specific, actionable errors
with context needed for debugging and logging.
"""

from dataclasses import dataclass
from typing import Any


class RelayError(Exception):
    """Base exception for the email relay."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(
                f"{k}={v!r}" for k, v in self.context.items() if v is not None
            )
            if context_str:
                return f"{self.message} ({context_str})"
        return self.message


@dataclass
class ConfigError(RelayError):
    """Required configuration is missing or empty."""

    setting: str
    env_var: str

    def __init__(self, setting: str, env_var: str) -> None:
        self.setting = setting
        self.env_var = env_var
        super().__init__(f"Missing {env_var}", setting=setting)


@dataclass
class DeliveryError(RelayError):
    """A webhook post failed (non-success response or transport exception)."""

    status_code: int | None = None
    error_body: str | None = None
    reason: str | None = None

    def __init__(
        self,
        status_code: int | None = None,
        error_body: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_body = error_body
        self.reason = reason
        detail = error_body or reason or "Unknown error"
        super().__init__(
            f"Failed to post message to Discord webhook: {detail}",
            status_code=status_code,
        )


@dataclass
class ParseFailure(RelayError):
    """Raw email could not be read or decoded into displayable content."""

    reason: str

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to parse email: {reason}")


@dataclass
class DiagnosticDeliveryError(RelayError):
    """The error report itself could not be delivered."""

    original: str

    def __init__(self, original: str) -> None:
        self.original = original
        super().__init__(
            "Failed to post error to Discord webhook",
            original=original,
        )


@dataclass
class InvalidStateTransitionError(RelayError):
    """Attempted invalid delivery state transition."""

    current_state: str
    new_state: str
    allowed_transitions: list[str]

    def __init__(
        self,
        current_state: str,
        new_state: str,
        allowed_transitions: list[str],
    ) -> None:
        self.current_state = current_state
        self.new_state = new_state
        self.allowed_transitions = allowed_transitions
        super().__init__(
            f"Cannot transition from '{current_state}' to '{new_state}'. "
            f"Allowed transitions: {allowed_transitions}",
        )
