"""
ForwardInboundEmail Lambda Handler

Main entry point for forwarding inbound emails to Discord.
Parses SNS→SES notifications and posts the email as webhook embeds.

Trigger: SNS topic subscribed to SES inbound email rule
Output: Discord webhook posts

Flow:
1. Parse SNS notification
2. Build InboundMessage (embedded content, or lazy S3 fetch)
3. Deliver: primary embed, continuations, or a diagnostic embed on failure
"""

import base64
import json
import logging
from datetime import datetime
from functools import partial
from typing import Any

import structlog

from relay.config import get_settings
from relay.exceptions import ConfigError, DiagnosticDeliveryError, ParseFailure
from relay.models.message import InboundMessage, RawSource
from relay.tools.s3 import fetch_raw_email
from lambdas.forward_inbound_email.delivery import deliver

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


def _extract_s3_reference(sns_message: dict) -> tuple[str, str] | None:
    """
    Extract S3 bucket/key from SES action if email is stored in S3.

    Returns:
        Tuple of (bucket, key) or None if embedded
    """
    receipt = sns_message.get("receipt", {})
    action = receipt.get("action", {})

    if action.get("type") == "S3":
        return action.get("bucketName"), action.get(
            "objectKey", action.get("objectKeyPrefix", "")
        )

    return None


def _decode_base64_content(content: str) -> bytes:
    try:
        return base64.b64decode(content)
    except ValueError as e:
        raise ParseFailure(f"invalid base64 content: {e}") from e


def _embedded_raw(sns_message: dict) -> RawSource:
    """
    Raw message embedded by an SES SNS action.

    The action encoding says whether `content` is base64 or plain UTF-8.
    Base64 is decoded lazily so a bad payload is reported like a parse failure.
    """
    content = sns_message.get("content") or ""
    action = sns_message.get("receipt", {}).get("action", {})
    if action.get("encoding", "UTF8").upper() == "BASE64":
        return partial(_decode_base64_content, content)
    return content


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.warning("invalid_ses_timestamp", value=value)
        return None


def build_inbound_message(sns_message: dict[str, Any]) -> InboundMessage:
    """
    Build an InboundMessage from an SES notification.

    When SES stored the message in S3 the raw body is fetched lazily, inside
    the delivery flow, so a failed fetch is reported like any parse failure.
    """
    mail = sns_message.get("mail", {})
    common_headers = mail.get("commonHeaders", {})
    destination = mail.get("destination") or common_headers.get("to") or [""]

    raw: RawSource
    s3_ref = _extract_s3_reference(sns_message)
    if s3_ref:
        bucket, key = s3_ref
        log.info("email_stored_in_s3", bucket=bucket, key=key)
        raw = partial(fetch_raw_email, bucket, key)
    else:
        raw = _embedded_raw(sns_message)

    kwargs: dict[str, Any] = {}
    received_at = _parse_timestamp(mail.get("timestamp"))
    if received_at:
        kwargs["received_at"] = received_at

    return InboundMessage(
        sender=mail.get("source", ""),
        recipient=destination[0],
        subject=common_headers.get("subject") or "",
        raw=raw,
        **kwargs,
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler for forwarding inbound emails.

    ConfigError and DiagnosticDeliveryError are re-raised so the invocation
    is marked as failed.

    Args:
        event: SNS event containing SES notification
        context: Lambda context

    Returns:
        Response dict with processing status
    """
    logging.getLogger().setLevel(get_settings().log_level)
    request_id = getattr(context, "aws_request_id", "local")

    log.info(
        "forwarding_inbound_email",
        request_id=request_id,
        event_keys=list(event.keys()),
    )

    try:
        # Handle SNS Records format (Lambda trigger)
        if "Records" in event:
            response: dict[str, Any] = {
                "statusCode": 200,
                "body": json.dumps({"status": "processed", "records": 0}),
            }
            for record in event["Records"]:
                response = _process_sns_record(record, request_id)
            return response

        # Handle direct SNS message (for testing)
        if "Message" in event:
            return _process_sns_message(json.loads(event["Message"]), request_id)

        # Handle raw SES notification (for testing)
        if "mail" in event or "content" in event:
            return _process_sns_message(event, request_id)

    except (ConfigError, DiagnosticDeliveryError) as e:
        log.error("lambda_handler_failed", request_id=request_id, error=str(e))
        raise

    except Exception as e:
        log.error("lambda_handler_failed", error=str(e), exc_info=True)
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(e)}),
        }

    log.error("unknown_event_format", event_keys=list(event.keys()))
    return {
        "statusCode": 400,
        "body": json.dumps({"error": "Unknown event format"}),
    }


def _process_sns_record(record: dict[str, Any], request_id: str) -> dict[str, Any]:
    """Process a single SNS record from Lambda event."""
    sns_data = record.get("Sns", {})
    message = sns_data.get("Message", "{}")

    try:
        sns_message = json.loads(message)
    except json.JSONDecodeError as e:
        log.error("sns_message_parse_failed", error=str(e))
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "Invalid SNS message JSON"}),
        }

    return _process_sns_message(sns_message, request_id)


def _process_sns_message(
    sns_message: dict[str, Any], request_id: str
) -> dict[str, Any]:
    """Forward one SES notification."""
    notification_type = sns_message.get("notificationType")

    # Handle bounce/complaint notifications
    if notification_type in ("Bounce", "Complaint"):
        log.info(
            "received_delivery_notification",
            type=notification_type,
            message_id=sns_message.get("mail", {}).get("messageId"),
        )
        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    "status": "skipped",
                    "reason": f"{notification_type} notification - not an inbound email",
                }
            ),
        }

    message = build_inbound_message(sns_message)
    deliver(message, get_settings())

    log.info("inbound_email_forwarded", request_id=request_id)

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "status": "processed",
                "message_id": sns_message.get("mail", {}).get("messageId"),
            }
        ),
    }
