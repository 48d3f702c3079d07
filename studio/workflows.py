"""
Page Flows
==========

State behind the three screens of the studio. A UI binds to these objects;
they own no widgets.

    GeneratePage    1-4 images + free-text prompt or preset
    ColorGradePage  exactly 1 image + preset, with an original/result compare
    HistoryPage     the signed-in user's past generations

Each page subscribes to session changes on construction and must be
``close()``d when its view goes away; closing also cancels any in-flight
generation so a late result is not applied.
"""

from __future__ import annotations

import logging

from studio.dispatcher import CancellationToken, GenerationDispatcher, GenerationResult
from studio.encoding import ImageReadError, encode_images
from studio.history import HistoryError, HistoryRecord, HistoryStore
from studio.presets import preset_prompt
from studio.selection import ImageSelection, SelectedImage
from studio.session import Session, SessionManager

logger = logging.getLogger(__name__)


class _SessionAwarePage:
    def __init__(self, sessions: SessionManager | None):
        self.sessions = sessions
        self.history_visible = bool(sessions and sessions.is_authenticated)
        self._subscription = sessions.subscribe(self._on_session_change) if sessions else None
        self.closed = False

    def _on_session_change(self, event: str, session: Session | None) -> None:
        self.history_visible = session is not None

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self.closed = True


class GeneratePage(_SessionAwarePage):
    """Upload up to four images and transform them with a prompt."""

    max_images = 4
    replace_selection = False

    def __init__(
        self,
        dispatcher: GenerationDispatcher,
        history: HistoryStore | None = None,
        sessions: SessionManager | None = None,
        prompt: str = "",
    ):
        super().__init__(sessions if sessions is not None else (history.sessions if history else None))
        self.dispatcher = dispatcher
        self.history = history
        self.selection = ImageSelection(max_images=self.max_images, replace=self.replace_selection)
        self.prompt = prompt
        self.is_loading = False
        self.generated_image_url: str | None = None
        self.error: str | None = None
        self._token: CancellationToken | None = None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_images(self, files: list[SelectedImage]) -> list[SelectedImage]:
        accepted = self.selection.add(files)
        if accepted:
            self.generated_image_url = None
        return accepted

    def remove_image(self, index: int) -> None:
        self.selection.remove(index)
        self.generated_image_url = None

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, prompt: str) -> GenerationResult:
        if len(self.selection) == 0:
            return self._fail("Please upload at least one image first")
        if not prompt or not prompt.strip():
            return self._fail("Please enter a prompt")
        if self.is_loading:
            return GenerationResult(error="A generation is already in progress")

        self.is_loading = True
        self.error = None
        token = self._token = CancellationToken()
        try:
            try:
                images = await encode_images(self.selection.images)
            except ImageReadError as e:
                logger.error("Generation error: %s", e)
                result = GenerationResult(error=str(e))
            else:
                result = await self.dispatcher.dispatch(images, prompt, token=token)

            if token.cancelled or result.cancelled:
                return GenerationResult(cancelled=True)

            if not result.ok:
                return self._fail(result.error or "Failed to generate image")

            self.generated_image_url = result.image_url
            self.prompt = prompt
            await self._save_history(result.image_url, prompt)
            return result
        finally:
            if self._token is token:
                self._token = None
                self.is_loading = False

    async def apply_preset(self, preset_id: str) -> GenerationResult:
        return await self.generate(preset_prompt(preset_id))

    def _fail(self, message: str) -> GenerationResult:
        self.error = message
        return GenerationResult(error=message)

    async def _save_history(self, image_url: str, prompt: str) -> None:
        if self.history is None or not self.history.sessions.is_authenticated:
            return
        # insert() never raises; a failed save leaves the result on screen
        await self.history.insert(image_url, prompt)

    def close(self) -> None:
        if self._token is not None:
            self._token.cancel()
        self.selection.clear()
        super().close()


class ColorGradePage(GeneratePage):
    """Single-image color grading with a before/after comparison."""

    max_images = 1
    replace_selection = True

    @property
    def original_image_url(self) -> str | None:
        if len(self.selection) == 0:
            return None
        return self.selection[0].preview_url

    def compare(self) -> tuple[str, str] | None:
        """Return ``(original preview, graded result)`` once both exist."""
        if self.original_image_url is None or self.generated_image_url is None:
            return None
        return self.original_image_url, self.generated_image_url


class HistoryPage(_SessionAwarePage):
    def __init__(self, history: HistoryStore):
        super().__init__(history.sessions)
        self.history = history
        self.records: list[HistoryRecord] = []
        self.is_loading = False
        self.error: str | None = None

    @property
    def requires_sign_in(self) -> bool:
        return not self.history.sessions.is_authenticated

    def _on_session_change(self, event: str, session: Session | None) -> None:
        super()._on_session_change(event, session)
        if session is None:
            self.records = []

    async def refresh(self) -> list[HistoryRecord]:
        self.is_loading = True
        try:
            records = await self.history.list()
        except HistoryError as e:
            logger.error("Failed to load history: %s", e)
            self.error = "Failed to load history"
            return self.records
        finally:
            self.is_loading = False
        if not self.closed:
            self.records = records
            self.error = None
        return records

    async def delete(self, record_id: str) -> bool:
        """Delete one record; on failure the visible list is left untouched."""
        try:
            await self.history.delete(record_id)
        except HistoryError as e:
            logger.error("Failed to delete history record %s: %s", record_id, e)
            self.error = "Failed to delete"
            return False
        self.records = [r for r in self.records if r.id != record_id]
        self.error = None
        return True

    def regenerate(self, record_id: str) -> str:
        """Prompt to carry into a new GeneratePage for an edit-and-regenerate."""
        for record in self.records:
            if record.id == record_id:
                return record.prompt
        raise KeyError(f"History record '{record_id}' not found")
