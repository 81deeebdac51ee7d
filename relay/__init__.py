# Shared Infrastructure for the Email Relay
"""
Shared infrastructure components for the inbound email relay.

This package provides:
- Delivery state machine (DeliveryState, valid transitions)
- Typed models for inbound messages and Discord embeds
- Tool implementations for the webhook and S3
- Configuration management
- Custom exceptions
"""

from relay.state_machine import DeliveryState, VALID_TRANSITIONS, validate_transition
from relay.exceptions import (
    RelayError,
    ConfigError,
    DeliveryError,
    ParseFailure,
    DiagnosticDeliveryError,
    InvalidStateTransitionError,
)
from relay.config import Settings, get_settings

__all__ = [
    # State machine
    "DeliveryState",
    "VALID_TRANSITIONS",
    "validate_transition",
    # Exceptions
    "RelayError",
    "ConfigError",
    "DeliveryError",
    "ParseFailure",
    "DiagnosticDeliveryError",
    "InvalidStateTransitionError",
    # Config
    "Settings",
    "get_settings",
]
