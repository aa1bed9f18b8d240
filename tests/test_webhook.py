"""Tests for the webhook notification renderer."""

import json

import httpx
import pytest

from rainwake.core.config import Settings
from rainwake.models.forecast import PrecipitationType
from rainwake.notification.webhook import WebhookNotificationRenderer

URL = "https://hooks.example.com/rain"


def _renderer(handler, url: str = URL) -> WebhookNotificationRenderer:
    settings = Settings(_env_file=None, notification_webhook_url=url)
    return WebhookNotificationRenderer(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_posts_precipitation_message():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200)

    renderer = _renderer(handler)

    assert await renderer.show_precipitation(60, PrecipitationType.MIXED) is True
    assert bodies == [
        {
            "kind": "precipitation",
            "title": "Rain or snow ahead!",
            "text": "Chance of rain or snow today: 60%",
            "pop": 60,
            "precipitation_type": "MIXED",
        }
    ]


@pytest.mark.asyncio
async def test_unconfigured_webhook_renders_nothing():
    renderer = _renderer(lambda request: httpx.Response(200), url="")

    assert await renderer.show_precipitation(60, PrecipitationType.RAIN) is False


@pytest.mark.asyncio
async def test_rejected_and_unreachable_webhook():
    assert await _renderer(lambda request: httpx.Response(500)).show_failure(3, "offline") is False

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert await _renderer(unreachable).show_failure(3, "offline") is False


@pytest.mark.asyncio
async def test_cancel_failure_posts_cleared_notice():
    kinds = []

    def handler(request: httpx.Request) -> httpx.Response:
        kinds.append(json.loads(request.content)["kind"])
        return httpx.Response(200)

    await _renderer(handler).cancel_failure()

    assert kinds == ["failure_cleared"]
