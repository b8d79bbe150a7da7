"""Example translation adapter.

Use this module as a reference when implementing new translation backends.
Implement BaseTranslationBackend and register the provider in
TranslationBackendFactory.
"""

import asyncio

from doclens.languages.catalog import ENGLISH, translatable_languages
from doclens.translation.base import BaseTranslationBackend, ProgressCallback


class ExampleTranslationAdapter(BaseTranslationBackend):
    """In-process backend: prefixes text with the target code, simulates downloads.

    No network calls. Useful for local development and tests.
    """

    DOWNLOAD_STEPS = 5

    def __init__(self, step_delay_seconds: float = 0.0) -> None:
        self._step_delay_seconds = step_delay_seconds
        self._downloaded: set[str] = {ENGLISH.code}
        self.download_calls: list[str] = []

    def supports(self, language_code: str) -> bool:
        return any(language.code == language_code for language in translatable_languages())

    async def translate(self, text: str, source_code: str, target_code: str) -> str:
        return f"[{target_code}] {text}"

    async def is_model_downloaded(self, language_code: str) -> bool:
        return language_code in self._downloaded

    async def download_model(
        self,
        language_code: str,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.download_calls.append(language_code)
        for step in range(1, self.DOWNLOAD_STEPS + 1):
            await asyncio.sleep(self._step_delay_seconds)
            if on_progress is not None:
                on_progress(step / self.DOWNLOAD_STEPS)
        self._downloaded.add(language_code)

    async def delete_model(self, language_code: str) -> None:
        self._downloaded.discard(language_code)
