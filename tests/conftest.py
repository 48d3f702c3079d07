import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from studio import gateway_client


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (1, 1), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


PNG_1PX = _png_bytes()

RESULT_URL = "https://cdn.example.com/result.png"


class FakeResponse:
    """Stand-in for ``requests.Response`` as used by studio.generation."""

    def __init__(self, status_code=200, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self.text = text if text is not None else (json.dumps(data) if data is not None else "")

    def json(self):
        if self._data is None:
            raise ValueError("No JSON body")
        return self._data


def upstream_success(url=RESULT_URL) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": "",
                    "images": [{"type": "image_url", "image_url": {"url": url}}],
                }
            }
        ]
    }


@pytest.fixture(autouse=True)
def gateway_env(monkeypatch):
    monkeypatch.setattr(gateway_client, "_config_cache", {})
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "test-key")
    monkeypatch.setenv("AI_GATEWAY_BASE_URL", "https://gateway.test")
    monkeypatch.delenv("AI_GATEWAY_MODEL", raising=False)


@pytest.fixture
def upstream(monkeypatch):
    """Capture outgoing gateway calls; set ``.response`` to control the reply."""

    class Upstream:
        def __init__(self):
            self.calls = []
            self.response = FakeResponse(200, upstream_success())

        def post(self, url, headers=None, json=None, timeout=None):
            self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
            if isinstance(self.response, Exception):
                raise self.response
            return self.response

    fake = Upstream()
    monkeypatch.setattr("studio.generation.requests.post", fake.post)
    return fake


class Recorder:
    """httpx.MockTransport handler that records requests and replies from a callable."""

    def __init__(self, reply):
        self.reply = reply
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.reply(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
