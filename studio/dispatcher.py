"""
Generation Dispatcher
=====================

Client side of the generation proxy: sends ``{images, prompt}`` to
``POST /api/generate-image`` and turns whatever comes back into a
GenerationResult. Failures are reported as messages, never raised.

Usage:
    from studio.dispatcher import GenerationDispatcher

    dispatcher = GenerationDispatcher()
    result = await dispatcher.dispatch(["data:image/png;base64,..."], "Make it snow")
    if result.ok:
        await save_image(result.image_url, "snow.png")
    else:
        print(result.error)
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

from studio.hosted_backend import get_backend_config
from studio.session import SessionManager

logger = logging.getLogger(__name__)

MAX_IMAGES = 4
GENERATE_PATH = "/api/generate-image"


@dataclass(frozen=True)
class GenerationResult:
    image_url: str | None = None
    error: str | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.image_url is not None and not self.cancelled


class CancellationToken:
    """Marks a request whose owner has gone away; its result must be discarded."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def _error_text(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:300] or r.reason_phrase
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return r.text[:300]


class GenerationDispatcher:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 180.0,
        sessions: SessionManager | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or get_backend_config()["api_url"]).rstrip("/")
        self.timeout = timeout
        self.sessions = sessions
        self._transport = transport

    def _headers(self) -> dict:
        h = {"Content-Type": "application/json"}
        session = self.sessions.current if self.sessions else None
        if session is not None:
            h["Authorization"] = f"Bearer {session.access_token}"
        return h

    async def dispatch(
        self,
        images: list[str],
        prompt: str,
        token: CancellationToken | None = None,
    ) -> GenerationResult:
        """Issue one generation call. No retries; the caller resubmits on failure."""
        if not prompt or not prompt.strip():
            return GenerationResult(error="Please enter a prompt")
        if not images:
            return GenerationResult(error="Please upload at least one image first")
        if len(images) > MAX_IMAGES:
            return GenerationResult(error=f"At most {MAX_IMAGES} images can be used at once")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(
                    f"{self.base_url}{GENERATE_PATH}",
                    json={"images": images, "prompt": prompt},
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            logger.error("Generation request failed: %s", e)
            result = GenerationResult(error=f"Generation request failed: {e}")
        else:
            result = self._result_from(r)

        if token is not None and token.cancelled:
            logger.debug("Discarding generation result for cancelled request")
            return GenerationResult(cancelled=True)
        return result

    @staticmethod
    def _result_from(r: httpx.Response) -> GenerationResult:
        if r.status_code != 200:
            message = f"Generation failed ({r.status_code}): {_error_text(r)}"
            logger.error(message)
            return GenerationResult(error=message)
        try:
            data = r.json()
        except ValueError:
            data = None
        url = data.get("imageUrl") if isinstance(data, dict) else None
        if not url:
            logger.error("No image URL in response: %s", r.text[:300])
            return GenerationResult(error="No image URL in response")
        return GenerationResult(image_url=url)


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------

async def save_image(
    image_url: str,
    output: str | Path,
    timeout: float = 60.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """
    Write a generated image to ``output``. ``data:`` URLs are decoded
    locally; anything else is downloaded.

    Raises:
        ValueError:   If a data URL is malformed.
        RuntimeError: If the download fails.
    """
    output = Path(output)
    if image_url.startswith("data:"):
        header, sep, payload = image_url.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("Unsupported data URL: expected base64 payload")
        try:
            content = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e
    else:
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
                r = await client.get(image_url)
        except httpx.HTTPError as e:
            raise RuntimeError(f"Failed to download image: {e}") from e
        if r.status_code != 200:
            raise RuntimeError(f"Failed to download image: {r.status_code}")
        content = r.content

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(content)
    return output
