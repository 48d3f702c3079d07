"""
Generation History
==================

CRUD against the hosted ``image_history`` table, scoped to the signed-in
user. Row visibility itself is enforced by the backend's access policy.

    list()    newest first; anonymous sessions see nothing
    insert()  best effort; skipped when anonymous, failures only logged
    delete()  raises HistoryError on any failure, including unknown ids
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from studio.hosted_backend import HISTORY_TABLE, get_backend_config, backend_headers
from studio.session import SessionManager

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised when history cannot be loaded or a record cannot be deleted."""


@dataclass(frozen=True)
class HistoryRecord:
    id: str
    user_id: str
    generated_image_url: str
    prompt: str
    created_at: str
    original_image_url: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "HistoryRecord":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            generated_image_url=row["generated_image_url"],
            prompt=row.get("prompt") or "",
            created_at=row["created_at"],
            original_image_url=row.get("original_image_url"),
        )


class HistoryStore:
    def __init__(
        self,
        sessions: SessionManager,
        url: str | None = None,
        anon_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        cfg = get_backend_config()
        self.sessions = sessions
        self.url = (url or cfg["url"]).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else cfg["anon_key"]
        self.timeout = timeout
        self._transport = transport

    @property
    def table_url(self) -> str:
        return f"{self.url}/rest/v1/{HISTORY_TABLE}"

    async def _request(self, method: str, params: dict | None = None, json=None, prefer: str | None = None) -> httpx.Response:
        session = self.sessions.current
        extra = {"Prefer": prefer} if prefer else None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.request(
                method,
                self.table_url,
                params=params,
                json=json,
                headers=backend_headers(self.anon_key, session.access_token if session else None, extra),
            )

    async def list(self) -> list[HistoryRecord]:
        """Return the current user's records, newest first."""
        if not self.sessions.is_authenticated:
            return []
        try:
            r = await self._request("GET", params={"select": "*", "order": "created_at.desc"})
        except httpx.HTTPError as e:
            raise HistoryError(f"Failed to load history: {e}") from e
        if r.status_code != 200:
            raise HistoryError(f"Failed to load history ({r.status_code}): {r.text[:300]}")
        try:
            records = [HistoryRecord.from_row(row) for row in r.json()]
        except (ValueError, KeyError, TypeError) as e:
            raise HistoryError(f"Failed to load history: unreadable response: {e}") from e
        records.sort(key=lambda rec: rec.created_at, reverse=True)
        return records

    async def insert(
        self,
        generated_image_url: str,
        prompt: str,
        original_image_url: str | None = None,
    ) -> HistoryRecord | None:
        """Persist a generation for the signed-in user; returns None when skipped or failed."""
        session = self.sessions.current
        if session is None:
            return None

        row = {
            "user_id": session.user_id,
            "original_image_url": original_image_url,
            "generated_image_url": generated_image_url,
            "prompt": prompt,
        }
        try:
            r = await self._request("POST", json=row, prefer="return=representation")
        except httpx.HTTPError as e:
            logger.error("Failed to save history: %s", e)
            return None
        if r.status_code not in (200, 201):
            logger.error("Failed to save history (%s): %s", r.status_code, r.text[:300])
            return None

        try:
            rows = r.json()
            return HistoryRecord.from_row(rows[0] if isinstance(rows, list) else rows)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("History saved but response was unreadable: %s", e)
            return None

    async def delete(self, record_id: str) -> None:
        try:
            r = await self._request("DELETE", params={"id": f"eq.{record_id}"}, prefer="return=representation")
        except httpx.HTTPError as e:
            raise HistoryError(f"Failed to delete: {e}") from e
        if r.status_code not in (200, 204):
            raise HistoryError(f"Failed to delete ({r.status_code}): {r.text[:300]}")
        if r.status_code == 200:
            try:
                deleted = r.json()
            except ValueError as e:
                raise HistoryError(f"Failed to delete: unreadable response: {r.text[:300]}") from e
            if not deleted:
                raise HistoryError(f"Failed to delete: no history record with id {record_id}")
