"""
Hosted Backend Configuration
============================

Connection settings for the hosted auth + database service that stores
sessions and generation history, plus the client-side proxy location.

Environment variables:
    STUDIO_BACKEND_URL  - Base URL of the hosted backend (auth + REST)
    STUDIO_BACKEND_KEY  - Public (anon) API key of the hosted backend
    STUDIO_API_URL      - Base URL of the generation proxy (backend/main.py)
"""

import os

DEFAULT_API_URL = "http://localhost:8000"
HISTORY_TABLE = "image_history"


def get_backend_config() -> dict:
    """Return a dict with keys: url, anon_key, api_url."""
    return {
        "url": os.environ.get("STUDIO_BACKEND_URL", "").rstrip("/"),
        "anon_key": os.environ.get("STUDIO_BACKEND_KEY", ""),
        "api_url": os.environ.get("STUDIO_API_URL", DEFAULT_API_URL).rstrip("/"),
    }


def backend_headers(anon_key: str, access_token: str | None = None, extra: dict | None = None) -> dict:
    """
    Headers for hosted backend calls. Requests made on behalf of a signed-in
    user carry the user's access token; otherwise the anon key is the bearer.
    """
    h = {
        "apikey": anon_key,
        "Authorization": f"Bearer {access_token or anon_key}",
        "Content-Type": "application/json",
    }
    if extra:
        h.update(extra)
    return h
