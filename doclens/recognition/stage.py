from doclens.languages.catalog import Language
from doclens.logging.logger import Log
from doclens.recognition.base import BaseOcrBackend
from doclens.recognition.exceptions import RecognitionError
from doclens.recognition.models import RecognizedText


class RecognitionStage:
    """Runs the OCR backend on one page image. Stateless, no retries."""

    def __init__(self, backend: BaseOcrBackend) -> None:
        self._backend = backend

    async def recognize(
        self,
        image_bytes: bytes,
        language_hint: Language | None = None,
    ) -> RecognizedText:
        """Extract text from a page image.

        An ``auto`` hint is treated as no hint: the backend picks the script.

        Raises:
            RecognitionError: wrapping whatever the backend raised.
        """
        hint = None if language_hint is None or language_hint.is_auto else language_hint
        hint_code = hint.code if hint is not None else None
        try:
            text, confidence = await self._backend.recognize(image_bytes, hint_code)
        except RecognitionError:
            raise
        except Exception as exc:
            raise RecognitionError(f"OCR backend failed: {exc}") from exc

        Log.info(
            f"OCR completed with {hint_code or 'auto'} recognizer: "
            f"{len(text)} characters recognized"
        )
        return RecognizedText(
            text=text,
            confidence=max(0.0, min(1.0, float(confidence))),
            language=hint,
        )
