from enum import Enum


class RecognizerVariant(str, Enum):
    """Script-specific recognizer flavours an OCR engine may offer."""

    LATIN = "latin"
    CHINESE = "chinese"
    DEVANAGARI = "devanagari"
    JAPANESE = "japanese"
    KOREAN = "korean"


RECOGNIZER_VARIANTS: dict[str, RecognizerVariant] = {
    "zh": RecognizerVariant.CHINESE,
    "hi": RecognizerVariant.DEVANAGARI,
    "ja": RecognizerVariant.JAPANESE,
    "ko": RecognizerVariant.KOREAN,
}


def recognizer_variant_for(language_code: str | None) -> RecognizerVariant:
    """Pick the recognizer for a language hint; no hint means Latin script."""
    if language_code is None:
        return RecognizerVariant.LATIN
    return RECOGNIZER_VARIANTS.get(language_code, RecognizerVariant.LATIN)
