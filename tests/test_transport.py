from __future__ import annotations

import json

import httpx
import pytest

from esports_notifier.notifications.transport import DeliveryError, HttpxWebhookTransport

URL = "https://discord.com/api/webhooks/1/token"


def _transport(handler, max_attempts: int = 1) -> HttpxWebhookTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxWebhookTransport(client=client, max_attempts=max_attempts)


@pytest.mark.asyncio
async def test_posts_json_payload() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(204)

    transport = _transport(handler)
    await transport.post(URL, {"content": "hello"})
    await transport.aclose()

    assert seen == [(URL, {"content": "hello"})]


@pytest.mark.asyncio
async def test_non_success_status_raises_delivery_error() -> None:
    transport = _transport(lambda request: httpx.Response(404))
    with pytest.raises(DeliveryError) as exc_info:
        await transport.post(URL, {"content": "hello"})
    await transport.aclose()

    assert exc_info.value.status_code == 404
    assert not exc_info.value.retryable


@pytest.mark.asyncio
async def test_connection_error_raises_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    transport = _transport(handler)
    with pytest.raises(DeliveryError) as exc_info:
        await transport.post(URL, {"content": "hello"})
    await transport.aclose()

    assert exc_info.value.status_code is None
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_retries_transient_status() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503 if len(calls) == 1 else 200)

    transport = _transport(handler, max_attempts=2)
    await transport.post(URL, {"content": "hello"})
    await transport.aclose()

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_client_errors_are_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400)

    transport = _transport(handler, max_attempts=3)
    with pytest.raises(DeliveryError):
        await transport.post(URL, {"content": "hello"})
    await transport.aclose()

    assert len(calls) == 1
