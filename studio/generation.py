"""
Image Generation Proxy
======================

Turns a client request (a handful of data-URL images plus a prompt) into a
single multimodal chat-completion call against the AI gateway and unwraps
the generated image URL from the response.

Every failure is raised as a GenerationError subclass carrying the HTTP
status the backend should answer with:

    InputError          400  missing/invalid images or prompt
    ConfigurationError  500  gateway API key not configured
    UpstreamError       502  gateway unreachable, non-200, or no image in reply

Usage:
    from studio.generation import generate

    url = generate(
        images=["data:image/png;base64,iVBORw0..."],
        prompt="Apply warm sunset color grading",
    )
"""

import logging

import requests

from studio.gateway_client import get_config, get_headers, api_url, resolve_model

logger = logging.getLogger(__name__)

# Upper bound on reference images per request
MAX_IMAGES = 4

INSTRUCTION_TEMPLATE = (
    "IMPORTANT: Generate an ultra high definition, full HD quality image. "
    "Follow these exact instructions: {prompt}. \n\n"
    "Use these {count} image(s) and create output exactly as described in the prompt. "
    "The prompt may be in any language including Hindi - follow it precisely. "
    "Generate with maximum quality, detail, and resolution. "
    "Ultra high resolution output required."
)


class GenerationError(Exception):
    """Base class for proxy failures; ``status_code`` is the HTTP status to return."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(GenerationError):
    status_code = 400


class ConfigurationError(GenerationError):
    status_code = 500


class UpstreamError(GenerationError):
    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None, upstream_body: str | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


# ---------------------------------------------------------------------------
# Payload assembly
# ---------------------------------------------------------------------------

def validate_request(images, prompt) -> tuple[list[str], str]:
    """Check the raw request fields and return them normalized."""
    if not images or not isinstance(images, list):
        raise InputError("Missing images array or prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise InputError("Missing images array or prompt")
    if len(images) > MAX_IMAGES:
        raise InputError(f"Too many images: at most {MAX_IMAGES} are allowed")
    for i, image in enumerate(images):
        if not isinstance(image, str) or not image:
            raise InputError(f"Image {i + 1} must be a non-empty data URL string")
    return images, prompt


def build_instruction(prompt: str, count: int) -> str:
    return INSTRUCTION_TEMPLATE.format(prompt=prompt, count=count)


def build_content(images: list[str], prompt: str) -> list[dict]:
    """
    Build the multimodal content array: one text part, then one image part
    per input image in the order given.
    """
    content = [{"type": "text", "text": build_instruction(prompt, len(images))}]
    content.extend(
        {"type": "image_url", "image_url": {"url": image}}
        for image in images
    )
    return content


def build_payload(images: list[str], prompt: str, model: str) -> dict:
    return {
        "model": resolve_model(model),
        "messages": [
            {
                "role": "user",
                "content": build_content(images, prompt),
            }
        ],
        "modalities": ["image", "text"],
    }


def extract_image_url(data) -> str | None:
    """Return ``choices[0].message.images[0].image_url.url`` or None if any step is missing."""
    try:
        url = data["choices"][0]["message"]["images"][0]["image_url"]["url"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(url, str) or not url:
        return None
    return url


# ---------------------------------------------------------------------------
# Upstream call
# ---------------------------------------------------------------------------

def generate(images, prompt, timeout: float | None = None) -> str:
    """
    Generate one image from 1-4 reference images and a prompt.

    Args:
        images:  Data-URL strings, in the order they should be presented.
        prompt:  The user's instruction, embedded verbatim.
        timeout: Request timeout in seconds. Defaults to the configured value.

    Returns:
        The generated image URL (often itself a ``data:`` URL).

    Raises:
        InputError:         If images or prompt are missing or malformed.
        ConfigurationError: If the gateway API key is not configured.
        UpstreamError:      If the gateway call fails or returns no image.
    """
    images, prompt = validate_request(images, prompt)

    try:
        cfg = get_config()
    except (ValueError, OSError) as e:
        logger.error("Invalid gateway configuration: %s", e)
        raise ConfigurationError(f"Invalid gateway configuration: {e}") from e
    if not cfg["api_key"]:
        raise ConfigurationError("AI_GATEWAY_API_KEY not configured")

    logger.info("Generating image from %d image(s) with prompt: %s", len(images), prompt)

    payload = build_payload(images, prompt, cfg["model"])

    try:
        r = requests.post(
            api_url("/v1/chat/completions", cfg["base_url"]),
            headers=get_headers(cfg["api_key"]),
            json=payload,
            timeout=timeout or cfg["timeout"],
        )
    except requests.RequestException as e:
        logger.error("AI gateway request failed: %s", e)
        raise UpstreamError(f"AI gateway request failed: {e}") from e

    if r.status_code != 200:
        body = r.text[:300]
        logger.error("AI gateway error: %s %s", r.status_code, body)
        raise UpstreamError(
            f"AI gateway error ({r.status_code}): {body}",
            upstream_status=r.status_code,
            upstream_body=body,
        )

    try:
        data = r.json()
    except ValueError:
        data = None
    logger.info("AI response received")

    url = extract_image_url(data)
    if url is None:
        logger.error("No image URL in AI response: %s", r.text[:300])
        raise UpstreamError(
            "No image URL in AI response",
            upstream_status=r.status_code,
            upstream_body=r.text[:300],
        )
    return url
