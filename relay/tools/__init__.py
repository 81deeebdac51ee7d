# Shared Tools
"""
Tool implementations for the relay: webhook delivery and S3 retrieval.
"""

from relay.tools.s3 import fetch_raw_email
from relay.tools.webhook import WebhookClient

__all__ = [
    # S3 tools
    "fetch_raw_email",
    # Webhook tools
    "WebhookClient",
]
