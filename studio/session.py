"""
Session / Identity
==================

Tracks who is signed in against the hosted backend's auth API and lets
pages observe sign-in / sign-out.

Usage:
    from studio.session import SessionManager

    sessions = SessionManager()
    sub = sessions.subscribe(lambda event, session: print(event, session))
    await sessions.sign_in_with_password("me@example.com", "secret")
    ...
    sub.unsubscribe()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import httpx

from studio.hosted_backend import get_backend_config, backend_headers

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

Listener = Callable[[str, "Session | None"], None]


class AuthError(Exception):
    """Raised when the auth API rejects a request or cannot be reached."""


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str
    email: str | None = None


class Subscription:
    """Handle returned by ``SessionManager.subscribe``."""

    def __init__(self, manager: "SessionManager", listener: Listener):
        self._manager = manager
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._manager._listeners.remove(self._listener)
            self.active = False


def _error_message(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:300]
    if isinstance(data, dict):
        return data.get("error_description") or data.get("msg") or data.get("message") or str(data)
    return str(data)


class SessionManager:
    """
    Holds the current session: anonymous (``current is None``) or
    authenticated. Listeners are called synchronously on every change.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        cfg = get_backend_config()
        self.url = (url or cfg["url"]).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else cfg["anon_key"]
        self.timeout = timeout
        self._transport = transport
        self._listeners: list[Listener] = []
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self._session)
            except Exception:
                logger.exception("Session listener failed on %s", event)

    @property
    def current(self) -> Session | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def set_session(self, session: Session | None) -> None:
        """Replace the current session (e.g. one restored by the caller) and notify listeners."""
        if session == self._session:
            return
        self._session = session
        self._emit(SIGNED_IN if session else SIGNED_OUT)

    # ------------------------------------------------------------------
    # Auth API
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _post(self, path: str, body: dict | None, access_token: str | None = None) -> httpx.Response:
        if not self.url:
            raise AuthError("STUDIO_BACKEND_URL not configured")
        try:
            async with self._client() as client:
                return await client.post(
                    f"{self.url}{path}",
                    json=body,
                    headers=backend_headers(self.anon_key, access_token),
                )
        except httpx.HTTPError as e:
            raise AuthError(f"Auth request failed: {e}") from e

    @staticmethod
    def _session_from(r: httpx.Response) -> Session | None:
        try:
            data = r.json()
        except ValueError as e:
            raise AuthError(f"Unreadable auth response ({r.status_code}): {r.text[:300]}") from e
        if not isinstance(data, dict):
            raise AuthError(f"Unexpected auth response: {r.text[:300]}")
        token = data.get("access_token")
        user = data.get("user") or {}
        if not isinstance(user, dict):
            return None
        if not token or not user.get("id"):
            return None
        return Session(access_token=token, user_id=user["id"], email=user.get("email"))

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        r = await self._post("/auth/v1/token?grant_type=password", {"email": email, "password": password})
        if r.status_code != 200:
            raise AuthError(f"Sign in failed ({r.status_code}): {_error_message(r)}")
        session = self._session_from(r)
        if session is None:
            raise AuthError("Sign in response did not contain a session")
        logger.info("Signed in as %s", session.email or session.user_id)
        self.set_session(session)
        return session

    async def sign_up(self, email: str, password: str) -> Session | None:
        """
        Register a new account. Returns the new session, or None when the
        backend requires email confirmation before the first sign-in.
        """
        r = await self._post("/auth/v1/signup", {"email": email, "password": password})
        if r.status_code not in (200, 201):
            raise AuthError(f"Sign up failed ({r.status_code}): {_error_message(r)}")
        session = self._session_from(r)
        if session is not None:
            self.set_session(session)
        return session

    async def sign_out(self) -> None:
        """Revoke the session server-side (best effort) and go anonymous."""
        session = self._session
        if session is None:
            return
        try:
            r = await self._post("/auth/v1/logout", None, access_token=session.access_token)
            if r.status_code >= 400:
                logger.warning("Logout returned %s: %s", r.status_code, _error_message(r))
        except AuthError as e:
            logger.warning("Logout request failed: %s", e)
        self.set_session(None)
