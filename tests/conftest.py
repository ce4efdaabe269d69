import json
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from prism_studio.config import Settings
from prism_studio.main import create_app

PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="


class FakeUpstream:
    """Records upstream calls and replies with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.reply: Callable[[httpx.Request], httpx.Response] = lambda _request: httpx.Response(
            200, json=gemini_image_body(PNG_B64)
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.reply(request)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


def gemini_image_body(image_b64: str) -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "Here is your image."},
                        {"inlineData": {"mimeType": "image/png", "data": image_b64}},
                    ]
                }
            }
        ]
    }


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-api-key")


@pytest.fixture
def app(settings: Settings, upstream: FakeUpstream):
    return create_app(settings=settings, upstream_transport=httpx.MockTransport(upstream))


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
