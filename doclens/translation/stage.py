from doclens.languages.catalog import Language, find_language
from doclens.languages.exceptions import UnsupportedLanguageError
from doclens.logging.logger import Log
from doclens.translation.base import BaseTranslationBackend
from doclens.translation.exceptions import TranslationError
from doclens.translation.identification import LanguageIdentifier
from doclens.translation.model_tracker import ModelAvailabilityTracker


class TranslationStage:
    """Translates recognized page text, making sure both models are present first."""

    def __init__(
        self,
        backend: BaseTranslationBackend,
        tracker: ModelAvailabilityTracker,
        identifier: LanguageIdentifier,
        fallback_language: Language,
    ) -> None:
        if fallback_language.is_auto:
            raise ValueError("fallback_language must be a concrete language")
        self._backend = backend
        self._tracker = tracker
        self._identifier = identifier
        self._fallback_language = fallback_language

    async def translate(self, text: str, source: Language, target: Language) -> str:
        """Translate ``text`` from ``source`` into ``target``.

        Raises:
            UnsupportedLanguageError: if the target is auto-detect or a language
                has no translation model.
            ModelDownloadError: if a required model cannot be downloaded.
            TranslationError: if the backend fails to translate.
        """
        if target.is_auto:
            raise UnsupportedLanguageError("Target language cannot be auto-detect")
        if not self._backend.supports(target.code):
            raise UnsupportedLanguageError(f"No translation model for target '{target.code}'")

        resolved = self.resolve_source(text, source)
        if not self._backend.supports(resolved.code):
            raise UnsupportedLanguageError(f"No translation model for source '{resolved.code}'")

        await self._tracker.download(target)
        if resolved != target:
            await self._tracker.download(resolved)
        else:
            Log.debug(f"Source and target are both '{target.code}', returning text unchanged")
            return text

        try:
            translated = await self._backend.translate(text, resolved.code, target.code)
        except TranslationError:
            raise
        except Exception as exc:
            raise TranslationError(f"Translation backend failed: {exc}") from exc

        Log.info(
            f"Translated {len(text)} characters from {resolved.code} to {target.code}"
        )
        return translated

    def resolve_source(self, text: str, source: Language) -> Language:
        """Turn an auto-detect source into a concrete language."""
        if not source.is_auto:
            return source
        code = self._identifier.identify(text)
        language = find_language(code) if code else None
        if language is None or language.is_auto or not self._backend.supports(language.code):
            Log.warning(
                f"Could not identify a supported source language (got {code!r}), "
                f"falling back to '{self._fallback_language.code}'"
            )
            return self._fallback_language
        Log.info(f"Auto-detected source language: {language.code}")
        return language
