"""
ForwardInboundEmail Lambda

Forwards inbound emails received via SES → SNS to a Discord webhook.
Long bodies are split across several embeds; failures are reported to the
same webhook as a diagnostic embed.

Flow:
    Inbound Email
    → SES Receipt Rule
    → SNS Topic
    → This Lambda
    → Discord Webhook
"""

from lambdas.forward_inbound_email.content import select_content
from lambdas.forward_inbound_email.delivery import EmailDelivery, deliver
from lambdas.forward_inbound_email.email_parser import EmailParser, parse_raw_email
from lambdas.forward_inbound_email.handler import build_inbound_message, lambda_handler
from lambdas.forward_inbound_email.notifications import (
    build_continuation,
    build_diagnostic,
    build_notifications,
    build_primary,
)
from lambdas.forward_inbound_email.splitter import split_text

__all__ = [
    "EmailDelivery",
    "EmailParser",
    "build_continuation",
    "build_diagnostic",
    "build_inbound_message",
    "build_notifications",
    "build_primary",
    "deliver",
    "lambda_handler",
    "parse_raw_email",
    "select_content",
    "split_text",
]
