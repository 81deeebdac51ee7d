"""
Webhook Tools

Posts embeds to a Discord webhook over httpx.
Every failure, httpx or otherwise, surfaces as DeliveryError.
"""

import json

import httpx
import structlog

from relay.exceptions import DeliveryError
from relay.models.embeds import NotificationPayload

log = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0


def _read_error_body(response: httpx.Response) -> str:
    """Best-effort rendering of a failed response body."""
    try:
        return json.dumps(response.json())
    except ValueError:
        return response.text or response.reason_phrase


class WebhookClient:
    """
    Sends one embed per POST to a single webhook URL.

    Usage:
        with WebhookClient(url) as client:
            client.post_embed(payload)

    An httpx.Client passed in is used as-is and left open for its owner.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def post_embed(self, payload: NotificationPayload) -> httpx.Response:
        """
        POST a single embed.

        Args:
            payload: Embed to deliver

        Returns:
            The successful httpx response

        Raises:
            DeliveryError: On any exception from the transport or a non-success status
        """
        try:
            response = self._client.post(
                self.url,
                json=payload.to_webhook_body(),
                headers={"Content-Type": "application/json"},
            )
        except Exception as e:
            log.error(
                "webhook_transport_failed",
                title_length=len(payload.title),
                error=str(e),
            )
            raise DeliveryError(reason=f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            error_body = _read_error_body(response)
            log.error(
                "webhook_post_rejected",
                status_code=response.status_code,
                error_body=error_body[:500],
            )
            raise DeliveryError(
                status_code=response.status_code,
                error_body=error_body,
            )

        log.debug(
            "webhook_post_succeeded",
            status_code=response.status_code,
            description_length=len(payload.description),
        )
        return response
