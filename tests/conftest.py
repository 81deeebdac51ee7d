"""
Pytest Configuration and Shared Fixtures

Provides settings, sample inbound messages, a recording httpx transport
for the webhook, and moto AWS mocking.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Callable

import boto3
import pytest
from moto import mock_aws

# Set test environment before importing application modules
os.environ["RELAY_AWS_REGION"] = "us-west-2"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ.pop("RELAY_DISCORD_WEBHOOK_URL", None)

from relay.config import Settings, get_settings  # noqa: E402
from relay.models.message import InboundMessage  # noqa: E402
from tests.mocks.mock_webhook import RecordingWebhook  # noqa: E402
from tests.utils.email_factory import make_raw_email  # noqa: E402

WEBHOOK_URL = "https://discord.com/api/webhooks/1234567890/abcdefghijklmnopqrstuvwxyz"


# --- Time Fixtures ---


@pytest.fixture
def frozen_datetime() -> datetime:
    """Fixed receipt time for deterministic tests."""
    return datetime(2025, 2, 6, 8, 30, 15, tzinfo=timezone.utc)


# --- Settings Fixtures ---


@pytest.fixture
def webhook_url() -> str:
    return WEBHOOK_URL


@pytest.fixture
def settings(webhook_url: str) -> Settings:
    """Settings with a webhook configured."""
    return Settings.model_validate({"discord_webhook_url": webhook_url})


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Ensure get_settings() re-reads the environment in every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- Raw Email Fixtures ---


@pytest.fixture
def raw_email_factory() -> Callable[..., str]:
    return make_raw_email


@pytest.fixture
def message_factory(frozen_datetime: datetime) -> Callable[..., InboundMessage]:
    """Build InboundMessage objects around a generated raw email."""

    def _make(
        *,
        body: str | None = "Hello\nI have a question\nBye!",
        html: str | None = None,
        subject: str = "Question about foo",
        sender: str = "sender@example.com",
        recipient: str = "recipient@example.com",
    ) -> InboundMessage:
        return InboundMessage(
            sender=sender,
            recipient=recipient,
            subject=subject,
            raw=make_raw_email(
                body=body,
                html=html,
                subject=subject,
                sender=sender,
                recipient=recipient,
            ),
            received_at=frozen_datetime,
        )

    return _make


# --- Webhook Fixtures ---


@pytest.fixture
def recording_webhook() -> RecordingWebhook:
    return RecordingWebhook()


@pytest.fixture
def http_client(recording_webhook: RecordingWebhook):
    with recording_webhook.client() as client:
        yield client


# --- AWS Mocking Fixtures ---


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    return {
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "region_name": "us-west-2",
    }


@pytest.fixture
def mock_s3(aws_credentials):
    """Create a mocked S3 bucket for stored inbound emails."""
    with mock_aws():
        s3 = boto3.client("s3", **aws_credentials)
        s3.create_bucket(
            Bucket="test-inbound-emails",
            CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
        )
        yield s3


# --- SES Event Fixtures ---


@pytest.fixture
def ses_notification_factory() -> Callable[..., dict[str, Any]]:
    """Build SES receipt notifications as delivered through SNS."""

    def _make(
        *,
        raw_email: str | None = None,
        subject: str = "Question about foo",
        s3_key: str | None = None,
        notification_type: str = "Received",
        encoding: str = "UTF8",
    ) -> dict[str, Any]:
        notification: dict[str, Any] = {
            "notificationType": notification_type,
            "mail": {
                "timestamp": "2025-02-06T08:30:15.000Z",
                "source": "sender@example.com",
                "messageId": "o3vrnil0e2ic28trm7dfhrc2v0clambda4nbp0g01",
                "destination": ["recipient@example.com"],
                "commonHeaders": {
                    "from": ["Sender <sender@example.com>"],
                    "to": ["recipient@example.com"],
                    "subject": subject,
                },
            },
            "receipt": {"action": {"type": "SNS", "encoding": encoding}},
        }
        if s3_key is not None:
            notification["receipt"]["action"] = {
                "type": "S3",
                "bucketName": "test-inbound-emails",
                "objectKey": s3_key,
            }
        elif raw_email is not None:
            notification["content"] = raw_email
        return notification

    return _make


@pytest.fixture
def sns_event_factory(ses_notification_factory):
    """Wrap an SES notification in the SNS Records envelope."""

    def _make(**kwargs) -> dict[str, Any]:
        return {
            "Records": [
                {
                    "EventSource": "aws:sns",
                    "Sns": {
                        "Type": "Notification",
                        "Message": json.dumps(ses_notification_factory(**kwargs)),
                    },
                }
            ]
        }

    return _make
