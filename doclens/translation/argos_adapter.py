import asyncio
import threading
from typing import Any

import argostranslate.package
import argostranslate.translate

from doclens.languages.catalog import translatable_languages
from doclens.logging.logger import Log
from doclens.translation.base import BaseTranslationBackend, ProgressCallback
from doclens.translation.exceptions import ModelDownloadError, TranslationError


class ArgosTranslationAdapter(BaseTranslationBackend):
    """Offline translation with Argos Translate packages.

    Argos ships one package per direction, so a language's model is the pair
    of packages between it and the English pivot.
    """

    PIVOT_CODE = "en"

    def __init__(self) -> None:
        self._index_updated = False
        self._index_lock = threading.Lock()

    def supports(self, language_code: str) -> bool:
        return any(language.code == language_code for language in translatable_languages())

    async def translate(self, text: str, source_code: str, target_code: str) -> str:
        return await asyncio.to_thread(self._translate_sync, text, source_code, target_code)

    async def is_model_downloaded(self, language_code: str) -> bool:
        return await asyncio.to_thread(self._is_installed_sync, language_code)

    async def download_model(
        self,
        language_code: str,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        await asyncio.to_thread(self._download_sync, language_code, on_progress)

    async def delete_model(self, language_code: str) -> None:
        await asyncio.to_thread(self._delete_sync, language_code)

    def _pairs(self, language_code: str) -> list[tuple[str, str]]:
        if language_code == self.PIVOT_CODE:
            return []
        return [(language_code, self.PIVOT_CODE), (self.PIVOT_CODE, language_code)]

    def _translate_sync(self, text: str, source_code: str, target_code: str) -> str:
        try:
            return argostranslate.translate.translate(text, source_code, target_code)
        except Exception as exc:
            raise TranslationError(
                f"argos translation {source_code}->{target_code} failed: {exc}"
            ) from exc

    def _is_installed_sync(self, language_code: str) -> bool:
        installed = {
            (package.from_code, package.to_code)
            for package in argostranslate.package.get_installed_packages()
        }
        return all(pair in installed for pair in self._pairs(language_code))

    def _ensure_index(self) -> None:
        with self._index_lock:
            if self._index_updated:
                return
            argostranslate.package.update_package_index()
            self._index_updated = True

    def _download_sync(self, language_code: str, on_progress: ProgressCallback | None) -> None:
        pairs = self._pairs(language_code)
        if not pairs:
            if on_progress is not None:
                on_progress(1.0)
            return
        try:
            self._ensure_index()
            available = {
                (package.from_code, package.to_code): package
                for package in argostranslate.package.get_available_packages()
            }
            installed = {
                (package.from_code, package.to_code)
                for package in argostranslate.package.get_installed_packages()
            }
            for done, pair in enumerate(pairs, start=1):
                if pair not in installed:
                    package: Any = available.get(pair)
                    if package is None:
                        raise ModelDownloadError(
                            f"No argos package available for {pair[0]}->{pair[1]}"
                        )
                    Log.info(f"Installing argos package {pair[0]}->{pair[1]}")
                    argostranslate.package.install_from_path(package.download())
                if on_progress is not None:
                    on_progress(done / len(pairs))
        except ModelDownloadError:
            raise
        except Exception as exc:
            raise ModelDownloadError(f"argos download for '{language_code}' failed: {exc}") from exc

    def _delete_sync(self, language_code: str) -> None:
        pairs = set(self._pairs(language_code))
        for package in argostranslate.package.get_installed_packages():
            if (package.from_code, package.to_code) in pairs:
                Log.info(f"Uninstalling argos package {package.from_code}->{package.to_code}")
                argostranslate.package.uninstall(package)
