from typing import ClassVar

from doclens.config.settings import Settings
from doclens.languages.catalog import get_language
from doclens.state.model_records import ModelRecordStore
from doclens.translation.base import BaseTranslationBackend
from doclens.translation.example_adapter import ExampleTranslationAdapter
from doclens.translation.identification import (
    FallbackIdentifier,
    LangDetectIdentifier,
    LanguageIdentifier,
)
from doclens.translation.model_tracker import ModelAvailabilityTracker
from doclens.translation.openai_adapter import OpenAITranslationAdapter
from doclens.translation.stage import TranslationStage


class TranslationBackendFactory:
    """Creates the configured translation backend."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTranslationBackend:
        """Create a configured translation backend from application settings."""
        provider = settings.translation_provider.lower()
        if provider == "example":
            return ExampleTranslationAdapter()
        if provider == "argos":
            # Optional extra; only imported when selected.
            from doclens.translation.argos_adapter import ArgosTranslationAdapter

            return ArgosTranslationAdapter()
        return OpenAITranslationAdapter(
            api_key=settings.translation_api_key,
            model=settings.translation_model_name,
            timeout_seconds=settings.translation_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        configured = settings.translation_base_url.strip()
        if provider == "openai":
            return configured or None
        if provider == "openai_compatible":
            if not configured:
                raise ValueError(
                    "translation_base_url is required for "
                    "translation_provider=openai_compatible"
                )
            return configured
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return configured or default_base_url
        supported = [
            "argos",
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown translation provider '{provider}'. Choose from: {supported}"
        )


class LanguageIdentifierFactory:
    """Creates the language identifier used for auto-detected sources."""

    IDENTIFIERS: ClassVar[dict[str, type[LanguageIdentifier]]] = {
        "langdetect": LangDetectIdentifier,
        "fallback": FallbackIdentifier,
    }

    @classmethod
    def create(cls, settings: Settings) -> LanguageIdentifier:
        name = settings.language_identifier.lower()
        identifier_cls = cls.IDENTIFIERS.get(name)
        if identifier_cls is None:
            raise ValueError(
                f"Unknown language identifier '{name}'. Choose from: {list(cls.IDENTIFIERS)}"
            )
        return identifier_cls()


def build_tracker(settings: Settings, records: ModelRecordStore) -> ModelAvailabilityTracker:
    """Build a tracker around the configured translation backend."""
    return ModelAvailabilityTracker(TranslationBackendFactory.create(settings), records)


def build_translation_stage(
    settings: Settings,
    tracker: ModelAvailabilityTracker,
) -> TranslationStage:
    """Build a TranslationStage sharing the tracker's backend."""
    return TranslationStage(
        backend=tracker.backend,
        tracker=tracker,
        identifier=LanguageIdentifierFactory.create(settings),
        fallback_language=get_language(settings.auto_detect_fallback_language),
    )
