"""Source-language identification for the auto-detect path."""

from abc import ABC, abstractmethod

from langdetect import DetectorFactory, LangDetectException, detect

from doclens.logging.logger import Log

DetectorFactory.seed = 0


class LanguageIdentifier(ABC):
    """Contract for identifying the language of recognized text."""

    @abstractmethod
    def identify(self, text: str) -> str | None:
        """Return an ISO 639-1 code, or None when the language cannot be determined."""


class LangDetectIdentifier(LanguageIdentifier):
    """Identifies text with langdetect. Seeded, so results are deterministic."""

    CODE_ALIASES: dict[str, str] = {
        "zh-cn": "zh",
        "zh-tw": "zh",
    }

    def identify(self, text: str) -> str | None:
        cleaned = text.strip()
        if not cleaned:
            return None
        try:
            code = detect(cleaned)
        except LangDetectException:
            Log.info(f"Unable to determine language for text of length {len(text)}")
            return None
        code = self.CODE_ALIASES.get(code.lower(), code.lower())
        Log.debug(f"Detected language: {code}")
        return code


class FallbackIdentifier(LanguageIdentifier):
    """Never identifies anything; callers use their configured fallback language."""

    def identify(self, text: str) -> str | None:
        return None
