"""
Delivery Orchestrator

Posts a forwarded email to the webhook, in order, one embed at a time.

Flow:
    START
    → SEND_PRIMARY        (read, parse, build, post primary embed)
    → SEND_CONTINUATIONS  (post remaining chunks in order)
    → DONE

Any exception raised in either sending state moves the run to
ERROR_REPORT, which posts one diagnostic embed and ends in DONE. If that post
fails too, the run ends in FATAL and DiagnosticDeliveryError is raised.
"""

import httpx
import structlog

from relay.config import Settings
from relay.exceptions import DeliveryError, DiagnosticDeliveryError, ParseFailure
from relay.models.embeds import NotificationPayload
from relay.models.message import ExtractedContent, InboundMessage
from relay.state_machine import DeliveryState, validate_transition
from relay.tools.webhook import WebhookClient
from lambdas.forward_inbound_email.content import select_content
from lambdas.forward_inbound_email.email_parser import EmailParser, parse_raw_email
from lambdas.forward_inbound_email.notifications import (
    build_diagnostic,
    build_notifications,
)

log = structlog.get_logger()


class EmailDelivery:
    """
    One delivery run for one inbound message.

    Tracks the current DeliveryState; every move is checked against
    VALID_TRANSITIONS.
    """

    def __init__(
        self,
        client: WebhookClient,
        settings: Settings,
        *,
        parser: EmailParser = parse_raw_email,
    ) -> None:
        self._client = client
        self._settings = settings
        self._parser = parser
        self._state = DeliveryState.START
        self.sent_count = 0

    @property
    def state(self) -> DeliveryState:
        return self._state

    def _transition(self, new_state: DeliveryState) -> None:
        validate_transition(self._state, new_state)
        log.debug(
            "delivery_state_changed",
            from_state=self._state.value,
            to_state=new_state.value,
        )
        self._state = new_state

    def _extract(self, message: InboundMessage) -> ExtractedContent:
        try:
            return self._parser(message.read_raw())
        except ParseFailure:
            raise
        except Exception as e:
            raise ParseFailure(f"{type(e).__name__}: {e}") from e

    def _post(self, payload: NotificationPayload) -> None:
        self._client.post_embed(payload)
        self.sent_count += 1

    def run(self, message: InboundMessage) -> None:
        """
        Deliver `message` and report any main-flow failure downstream.

        Raises:
            DiagnosticDeliveryError: If the failure report could not be posted
        """
        self._transition(DeliveryState.SEND_PRIMARY)
        try:
            content, is_rich = select_content(self._extract(message))
            primary, *continuations = build_notifications(
                message,
                content,
                is_rich,
                max_length=self._settings.embed_description_max_length,
                footer_text=self._settings.footer_text,
            )

            self._post(primary)
            log.info(
                "primary_embed_sent",
                is_rich=is_rich,
                content_length=len(content),
                continuation_count=len(continuations),
            )

            self._transition(DeliveryState.SEND_CONTINUATIONS)
            for index, payload in enumerate(continuations, start=1):
                self._post(payload)
                log.debug("continuation_embed_sent", index=index)

        except Exception as e:
            if not self._state.is_recoverable:
                raise
            log.warning(
                "email_delivery_failed",
                state=self._state.value,
                error_type=type(e).__name__,
                error=str(e),
                sent_count=self.sent_count,
            )
            self._transition(DeliveryState.ERROR_REPORT)
            self._report(e)

        self._transition(DeliveryState.DONE)
        log.info("email_delivery_finished", sent_count=self.sent_count)

    def _report(self, error: Exception) -> None:
        try:
            self._client.post_embed(
                build_diagnostic(
                    error,
                    max_length=self._settings.embed_description_max_length,
                )
            )
        except DeliveryError as e:
            self._transition(DeliveryState.FATAL)
            log.error(
                "diagnostic_delivery_failed",
                original_error=str(error),
                error=str(e),
            )
            raise DiagnosticDeliveryError(original=str(error)) from e

        log.info("diagnostic_embed_sent", error_type=type(error).__name__)


def deliver(
    message: InboundMessage,
    settings: Settings,
    *,
    parser: EmailParser = parse_raw_email,
    http_client: httpx.Client | None = None,
) -> None:
    """
    Forward one inbound email to the configured Discord webhook.

    Args:
        message: Inbound email
        settings: Relay settings; the webhook URL is required
        parser: Raw-email parser (stdlib MIME parser by default)
        http_client: Optional httpx client, left open after the call

    Raises:
        ConfigError: If no webhook URL is configured (nothing is sent)
        DiagnosticDeliveryError: If delivery failed and so did the error report
    """
    url = settings.require_webhook_url()

    log.info(
        "delivering_email",
        recipient=message.recipient,
        subject_length=len(message.subject),
    )

    with WebhookClient(
        url,
        timeout=settings.http_timeout_seconds,
        client=http_client,
    ) as client:
        EmailDelivery(client, settings, parser=parser).run(message)
