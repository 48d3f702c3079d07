"""
AI Gateway Client Configuration
================================

Reads the upstream gateway credentials and provides shared configuration
for the generation proxy.

Environment variables:
    AI_GATEWAY_API_KEY  - API key for the gateway (required at request time)
    AI_GATEWAY_BASE_URL - Base URL of the gateway
    AI_GATEWAY_MODEL    - Model alias or full ID used for image generation
    AI_GATEWAY_TIMEOUT  - Upstream request timeout in seconds

When a variable is unset, the value from the first settings.json found in
SETTINGS_PATHS is used (keys under "env").
"""

import os
import json
from pathlib import Path

# ---------------------------------------------------------------------------
# Settings discovery
# ---------------------------------------------------------------------------

SETTINGS_PATHS = [
    Path(__file__).resolve().parent.parent / "backend" / "settings.json",
    Path(__file__).resolve().parent.parent / "settings.json",
]

DEFAULT_BASE_URL = "https://ai.gateway.lovable.dev"
DEFAULT_TIMEOUT = 120

_config_cache = None


def _load_settings() -> dict:
    """Load settings from the first available settings file."""
    for path in SETTINGS_PATHS:
        if path.exists():
            with open(path) as f:
                data = json.load(f)
            env = data.get("env", {})
            return {
                "api_key": env.get("AI_GATEWAY_API_KEY", ""),
                "base_url": env.get("AI_GATEWAY_BASE_URL", ""),
                "model": env.get("AI_GATEWAY_MODEL", ""),
                "source": str(path),
            }
    return {}


def get_config() -> dict:
    """
    Get the gateway configuration.

    Returns a dict with keys: api_key, base_url, model, timeout, source.
    Environment variables take precedence over settings.json. The API key
    is returned as an empty string when it is not configured anywhere;
    callers decide whether that is fatal.
    """
    global _config_cache
    if _config_cache is None:
        _config_cache = _load_settings()

    return {
        "api_key": os.environ.get("AI_GATEWAY_API_KEY", _config_cache.get("api_key", "")),
        "base_url": os.environ.get("AI_GATEWAY_BASE_URL") or _config_cache.get("base_url") or DEFAULT_BASE_URL,
        "model": os.environ.get("AI_GATEWAY_MODEL") or _config_cache.get("model") or DEFAULT_IMAGE_MODEL,
        "timeout": float(os.environ.get("AI_GATEWAY_TIMEOUT", DEFAULT_TIMEOUT)),
        "source": _config_cache.get("source", "env"),
    }


def get_headers(api_key: str, extra: dict | None = None) -> dict:
    """Return standard Authorization + Content-Type headers."""
    h = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    if extra:
        h.update(extra)
    return h


def api_url(path: str, base_url: str | None = None) -> str:
    """Build a full API URL from a relative path like '/v1/chat/completions'."""
    base = (base_url or get_config()["base_url"]).rstrip("/")
    return f"{base}{path}"


# ---------------------------------------------------------------------------
# Model catalog
# ---------------------------------------------------------------------------

MODELS = {
    "gemini-flash-image": "google/gemini-2.5-flash-image-preview",
    "gemini-pro-image": "google/gemini-3-pro-image-preview",
}

DEFAULT_IMAGE_MODEL = "gemini-flash-image"


def resolve_model(name: str) -> str:
    """
    Resolve a short model alias to its full gateway model ID.

    Examples:
        resolve_model("gemini-flash-image") -> "google/gemini-2.5-flash-image-preview"

    If the name is not a known alias, it is returned as-is (assumed to be
    a full model ID already).
    """
    return MODELS.get(name, name)

