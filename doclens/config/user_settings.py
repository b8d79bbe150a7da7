from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from doclens.languages.catalog import AUTO_DETECT_CODE, Language, get_language
from doclens.languages.exceptions import UnsupportedLanguageError


class ImageQuality(str, Enum):
    """Image quality presets applied when page images are stored."""

    HIGH = "high"
    MEDIUM = "medium"

    @property
    def compression_quality(self) -> float:
        return 0.9 if self is ImageQuality.HIGH else 0.7

    @property
    def jpeg_quality(self) -> int:
        """Compression ratio expressed on Pillow's 1-95 JPEG scale."""
        return round(self.compression_quality * 100)


class UserSettings(BaseModel):
    """Persisted user preferences.

    Languages are stored by code; ``source()``/``target()`` resolve them
    against the catalog.
    """

    model_config = ConfigDict(frozen=True)

    source_language: str = AUTO_DETECT_CODE
    target_language: str = "en"
    auto_detect_language: bool = True
    auto_capture: bool = True
    flash_default_on: bool = False
    image_quality: ImageQuality = ImageQuality.HIGH
    keep_translation_history: bool = True
    keep_original_images: bool = True

    @field_validator("source_language", "target_language")
    @classmethod
    def _known_language(cls, value: str) -> str:
        try:
            return get_language(value).code
        except UnsupportedLanguageError as exc:
            raise ValueError(str(exc)) from exc

    @model_validator(mode="after")
    def _target_is_concrete(self) -> "UserSettings":
        if self.target_language == AUTO_DETECT_CODE:
            raise ValueError("target_language cannot be auto-detect")
        return self

    def source(self) -> Language:
        return get_language(self.source_language)

    def target(self) -> Language:
        return get_language(self.target_language)

    def with_languages(self, source: Language, target: Language) -> "UserSettings":
        return self.model_validate(
            {
                **self.model_dump(),
                "source_language": source.code,
                "target_language": target.code,
                "auto_detect_language": source.is_auto,
            }
        )

    def swap_languages(self) -> "UserSettings":
        """Swap source and target. Does nothing while the source is auto-detect."""
        if self.source_language == AUTO_DETECT_CODE:
            return self
        return self.with_languages(self.target(), self.source())

    def with_auto_detect(self, enabled: bool) -> "UserSettings":
        changes: dict[str, object] = {"auto_detect_language": enabled}
        if enabled:
            changes["source_language"] = AUTO_DETECT_CODE
        return self.model_validate({**self.model_dump(), **changes})
