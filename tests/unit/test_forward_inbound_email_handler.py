"""
Unit tests for ForwardInboundEmail Lambda handler.

Tests cover:
- InboundMessage construction from SES notifications
- SNS event routing and response codes
- Raw email fetched from S3 (moto)
"""

import base64
import json
import logging
from functools import partial

import pytest

from lambdas.forward_inbound_email import handler
from lambdas.forward_inbound_email.delivery import deliver
from lambdas.forward_inbound_email.handler import build_inbound_message, lambda_handler
from relay.exceptions import ConfigError
from tests.utils.email_factory import make_raw_email


@pytest.fixture
def configured(monkeypatch, webhook_url, http_client):
    """Configure the webhook and route deliveries through the recording transport."""
    monkeypatch.setenv("RELAY_DISCORD_WEBHOOK_URL", webhook_url)
    monkeypatch.setattr(handler, "deliver", partial(deliver, http_client=http_client))


# ============================================================================
# build_inbound_message Tests
# ============================================================================


class TestBuildInboundMessage:
    """Tests for mapping an SES notification to an InboundMessage."""

    def test_embedded_content_kept_verbatim(self, ses_notification_factory, frozen_datetime):
        raw = make_raw_email()

        message = build_inbound_message(ses_notification_factory(raw_email=raw))

        assert message.sender == "sender@example.com"
        assert message.recipient == "recipient@example.com"
        assert message.subject == "Question about foo"
        assert message.received_at == frozen_datetime
        assert message.raw == raw

    def test_base64_content_decoded(self, ses_notification_factory):
        raw = make_raw_email()
        encoded = base64.b64encode(raw.encode()).decode()

        message = build_inbound_message(
            ses_notification_factory(raw_email=encoded, encoding="BASE64")
        )

        assert message.read_raw() == raw

    def test_utf8_content_is_never_base64_decoded(self, ses_notification_factory):
        # Plain text that happens to be valid base64
        message = build_inbound_message(ses_notification_factory(raw_email="SGVsbG8="))

        assert message.read_raw() == "SGVsbG8="

    def test_s3_action_fetches_lazily(self, ses_notification_factory):
        message = build_inbound_message(ses_notification_factory(s3_key="emails/abc123"))

        assert isinstance(message.raw, partial)
        assert message.raw.args == ("test-inbound-emails", "emails/abc123")

    def test_missing_subject_uses_placeholder(self, ses_notification_factory):
        message = build_inbound_message(ses_notification_factory(raw_email="", subject=""))

        assert message.subject == "(no subject)"

    def test_invalid_timestamp_defaults_to_now(self, ses_notification_factory, frozen_datetime):
        notification = ses_notification_factory(raw_email=make_raw_email())
        notification["mail"]["timestamp"] = "yesterday"

        message = build_inbound_message(notification)

        assert message.received_at > frozen_datetime


# ============================================================================
# lambda_handler Tests
# ============================================================================


class TestLambdaHandler:
    """Tests for event routing and response codes."""

    def test_records_event_is_forwarded(self, configured, sns_event_factory, recording_webhook):
        response = lambda_handler(sns_event_factory(raw_email=make_raw_email()), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "processed"
        assert body["message_id"] == "o3vrnil0e2ic28trm7dfhrc2v0clambda4nbp0g01"
        assert len(recording_webhook.requests) == 1
        embed = recording_webhook.embeds[0]
        assert embed["title"] == "Question about foo"
        assert embed["description"] == "Hello\nI have a question\nBye!"

    def test_raw_ses_notification_is_forwarded(self, configured, ses_notification_factory, recording_webhook):
        response = lambda_handler(ses_notification_factory(raw_email=make_raw_email()), None)

        assert response["statusCode"] == 200
        assert len(recording_webhook.requests) == 1

    def test_bounce_is_skipped(self, configured, sns_event_factory, recording_webhook):
        response = lambda_handler(sns_event_factory(notification_type="Bounce"), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["status"] == "skipped"
        assert recording_webhook.requests == []

    def test_unknown_event_format(self):
        response = lambda_handler({"detail-type": "Scheduled Event"}, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "Unknown event format"

    def test_invalid_sns_json(self):
        event = {"Records": [{"Sns": {"Message": "not json"}}]}

        response = lambda_handler(event, None)

        assert response["statusCode"] == 400

    def test_missing_webhook_url_fails_invocation(self, sns_event_factory, recording_webhook):
        with pytest.raises(ConfigError):
            lambda_handler(sns_event_factory(raw_email=make_raw_email()), None)

        assert recording_webhook.requests == []

    def test_invalid_base64_is_reported(self, configured, sns_event_factory, recording_webhook):
        response = lambda_handler(
            sns_event_factory(raw_email="not base64!!", encoding="BASE64"), None
        )

        assert response["statusCode"] == 200
        diagnostic = recording_webhook.embeds[0]
        assert diagnostic["title"] == "Error while processing email"
        assert "invalid base64 content" in diagnostic["description"]

    def test_log_level_applied_to_root_logger(self, monkeypatch):
        root = logging.getLogger()
        original = root.level
        monkeypatch.setenv("RELAY_LOG_LEVEL", "WARNING")

        try:
            lambda_handler({"detail-type": "Scheduled Event"}, None)
            assert root.level == logging.WARNING
        finally:
            root.setLevel(original)

    def test_unreported_failure_returns_500(self, configured, monkeypatch, sns_event_factory):
        def broken(sns_message):
            raise KeyError("mail")

        monkeypatch.setattr(handler, "build_inbound_message", broken)

        response = lambda_handler(sns_event_factory(raw_email=make_raw_email()), None)

        assert response["statusCode"] == 500


class TestS3StoredEmail:
    """Tests for SES receipt rules that store the message in S3."""

    def test_stored_email_is_fetched_and_forwarded(
        self, configured, mock_s3, sns_event_factory, recording_webhook
    ):
        mock_s3.put_object(
            Bucket="test-inbound-emails",
            Key="emails/abc123",
            Body=make_raw_email(body="Stored in S3").encode(),
        )

        response = lambda_handler(sns_event_factory(s3_key="emails/abc123"), None)

        assert response["statusCode"] == 200
        assert recording_webhook.embeds[0]["description"] == "Stored in S3"

    def test_missing_object_is_reported(self, configured, mock_s3, sns_event_factory, recording_webhook):
        response = lambda_handler(sns_event_factory(s3_key="emails/missing"), None)

        assert response["statusCode"] == 200
        assert len(recording_webhook.requests) == 1
        diagnostic = recording_webhook.embeds[0]
        assert diagnostic["title"] == "Error while processing email"
        assert "NoSuchKey" in diagnostic["description"]
