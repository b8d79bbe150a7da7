"""Per-language translation model availability and download tracking.

The tracker is the one piece of state shared by concurrent pipeline runs:
* the durable "downloaded" record lives in a ModelRecordStore,
* in-flight progress lives in a lock-guarded map (backends may report it
  from worker threads),
* each in-flight download is a single asyncio.Task per language code, so
  concurrent callers for the same code await the same backend download.
"""

import asyncio
import contextlib
import threading
from dataclasses import dataclass

from doclens.languages.catalog import ALL_LANGUAGES, Language
from doclens.languages.exceptions import UnsupportedLanguageError
from doclens.logging.logger import Log
from doclens.state.model_records import ModelRecordStore
from doclens.translation.base import BaseTranslationBackend, ProgressCallback
from doclens.translation.exceptions import ModelDownloadError, TranslationError


@dataclass(frozen=True)
class ModelAvailability:
    """Snapshot of one language model's state."""

    is_downloaded: bool
    download_progress: float = 0.0


class ModelAvailabilityTracker:
    """Tracks which translation models are available and drives downloads."""

    def __init__(self, backend: BaseTranslationBackend, records: ModelRecordStore) -> None:
        self._backend = backend
        self._records = records
        self._progress: dict[str, float] = {}
        self._progress_lock = threading.Lock()
        self._listeners: dict[str, list[ProgressCallback]] = {}
        self._inflight: dict[str, asyncio.Task[None]] = {}

    @property
    def backend(self) -> BaseTranslationBackend:
        return self._backend

    async def is_downloaded(self, language: Language) -> bool:
        """Cache-first check: a durable record wins, otherwise ask the backend.

        Raises:
            TranslationError: if the backend cannot tell whether the model is present.
        """
        if language.is_auto or self._records.contains(language.code):
            return True
        if not self._backend.supports(language.code):
            return False
        try:
            downloaded = await self._backend.is_model_downloaded(language.code)
        except Exception as exc:
            Log.error(f"Model availability check failed for '{language.code}': {exc}")
            raise TranslationError(
                f"Model availability check failed for '{language.code}': {exc}"
            ) from exc
        if downloaded:
            self._records.add(language.code)
        return downloaded

    def download_progress(self, language: Language) -> float:
        """Last known progress of an in-flight download, 0.0 when none is tracked."""
        with self._progress_lock:
            return self._progress.get(language.code, 0.0)

    async def availability(self, language: Language) -> ModelAvailability:
        if await self.is_downloaded(language):
            return ModelAvailability(is_downloaded=True, download_progress=1.0)
        return ModelAvailability(
            is_downloaded=False,
            download_progress=self.download_progress(language),
        )

    async def languages(self) -> list[Language]:
        """The catalog with each entry's download flag refreshed."""
        return [
            language.with_download_state(await self.is_downloaded(language))
            for language in ALL_LANGUAGES
        ]

    async def download(
        self,
        language: Language,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Ensure the model for ``language`` is available locally.

        Idempotent. Concurrent calls for the same language share one backend
        download; cancelling one caller does not cancel it for the others.

        Raises:
            UnsupportedLanguageError: if the backend has no model for this language.
            ModelDownloadError: if the backend download fails.
        """
        code = language.code
        if await self.is_downloaded(language):
            return
        if not self._backend.supports(code):
            raise UnsupportedLanguageError(f"No translation model exists for '{code}'")

        task = self._inflight.get(code)
        if task is None:
            task = asyncio.ensure_future(self._download(code))
            self._inflight[code] = task
            task.add_done_callback(lambda done, key=code: self._finish(key, done))

        if on_progress is not None:
            self._listeners.setdefault(code, []).append(on_progress)
        try:
            await asyncio.shield(task)
        finally:
            if on_progress is not None:
                listeners = self._listeners.get(code, [])
                if on_progress in listeners:
                    listeners.remove(on_progress)

    async def delete(self, language: Language) -> None:
        """Remove a downloaded model. A model that is not downloaded is left alone.

        Raises:
            TranslationError: if the backend fails to free the model.
        """
        code = language.code
        task = self._inflight.get(code)
        if task is not None:
            with contextlib.suppress(ModelDownloadError):
                await asyncio.shield(task)

        if language.is_auto or not await self.is_downloaded(language):
            Log.debug(f"Model for '{code}' is not downloaded, nothing to delete")
            return

        if self._backend.supports(code):
            try:
                await self._backend.delete_model(code)
            except Exception as exc:
                Log.error(f"Failed to delete model for '{code}': {exc}")
                raise TranslationError(f"Failed to delete model for '{code}': {exc}") from exc

        self._records.discard(code)
        self._clear_progress(code)
        Log.info(f"Model deleted: {language.display_name}")

    async def _download(self, code: str) -> None:
        if self._records.contains(code):
            return
        Log.info(f"Downloading translation model for '{code}'")
        try:
            self._set_progress(code, 0.0)
            await self._backend.download_model(
                code,
                on_progress=lambda value: self._set_progress(code, value),
            )
        except ModelDownloadError as exc:
            self._clear_progress(code)
            Log.error(f"Model download failed for '{code}': {exc}")
            raise
        except asyncio.CancelledError:
            self._clear_progress(code)
            Log.warning(f"Model download cancelled for '{code}'")
            raise
        except Exception as exc:
            self._clear_progress(code)
            Log.error(f"Model download failed for '{code}': {exc}")
            raise ModelDownloadError(f"Model download failed for '{code}': {exc}") from exc

        self._records.add(code)
        self._clear_progress(code)
        Log.info(f"Model downloaded successfully: '{code}'")

    def _finish(self, code: str, task: "asyncio.Task[None]") -> None:
        self._inflight.pop(code, None)
        self._listeners.pop(code, None)
        if not task.cancelled():
            # Mark the outcome retrieved; callers still see it through shield().
            task.exception()

    def _set_progress(self, code: str, value: float) -> None:
        clamped = max(0.0, min(1.0, float(value)))
        with self._progress_lock:
            self._progress[code] = clamped
        for listener in list(self._listeners.get(code, [])):
            # One caller's listener must not fail the download shared by the others.
            try:
                listener(clamped)
            except Exception as exc:
                Log.warning(f"Progress listener for '{code}' failed: {exc}")

    def _clear_progress(self, code: str) -> None:
        with self._progress_lock:
            self._progress.pop(code, None)
