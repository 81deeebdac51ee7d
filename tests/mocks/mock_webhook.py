"""
Mock Discord Webhook

httpx transport double for unit tests.
Records every request and replays scripted outcomes.
"""

import json
from typing import Any

import httpx


class RecordingWebhook:
    """
    httpx transport double recording every webhook request.

    `responses` is consumed in order; each item is an int status code, an
    exception instance to raise, or a callable returning an httpx.Response.
    Once exhausted, every request gets a 204.
    """

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(204)
        outcome = self.responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(request)
        return httpx.Response(outcome, json={"message": "Something unexpected"})

    @property
    def embeds(self) -> list[dict[str, Any]]:
        """First embed of every recorded request body."""
        return [json.loads(r.content)["embeds"][0] for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))
