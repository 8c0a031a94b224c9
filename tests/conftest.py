"""
Pytest configuration and fixtures.
"""
import json
import logging
from typing import Any, Callable, Optional

import httpx
import pytest

from routing_client.core.logging import StructuredLogger
from routing_client.services.request_client import RequestClient


BASE_URL = "https://routing.example.com"


class RecordingLogger(StructuredLogger):
    """Structured logger keeping every emitted event in memory."""

    def __init__(self):
        super().__init__("routing_client.tests")
        self.events: list[dict[str, Any]] = []

    def log(
        self,
        event: str,
        fields: Optional[dict[str, Any]] = None,
        *,
        message: Optional[str] = None,
        level: int = logging.INFO,
    ):
        self.events.append(
            {"event": event, "fields": dict(fields or {}), "message": message, "level": level}
        )


class RecordingHandler:
    """MockTransport handler recording every request it answers."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self._responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


def echo_responder(request: httpx.Request) -> httpx.Response:
    """Reply with the method, query and body of the request."""
    body = json.loads(request.content) if request.content else None
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "path": request.url.path,
            "query": dict(request.url.params),
            "body": body,
        },
    )


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Logger capturing retry events."""
    return RecordingLogger()


@pytest.fixture
def echo_handler() -> RecordingHandler:
    """Handler echoing each request back."""
    return RecordingHandler(echo_responder)


@pytest.fixture
def make_client(recording_logger):
    """Factory building clients on top of a mock transport."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> RequestClient:
        options = dict(kwargs.pop("client_options", {}) or {})
        options.setdefault("transport", httpx.MockTransport(handler))
        options.setdefault("trust_env", False)
        kwargs.setdefault("retry_backoff", 0)
        kwargs.setdefault("logger", recording_logger)
        return RequestClient(BASE_URL, client_options=options, **kwargs)

    return _make


PROXY_VARIABLES = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "NO_PROXY")


@pytest.fixture
def no_env_proxies(monkeypatch):
    """Clear proxy settings inherited from the environment."""
    for name in PROXY_VARIABLES:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)
    return monkeypatch
