from abc import ABC, abstractmethod


class BaseOcrBackend(ABC):
    """Contract for all OCR engine adapters."""

    @abstractmethod
    async def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
    ) -> tuple[str, float]:
        """Extract text from an encoded page image.

        Args:
            image_bytes: Encoded image (JPEG or PNG).
            language_hint: Catalog language code, or None to let the engine
                           pick the script on its own. Never "auto".

        Returns:
            Tuple of (recognized text, confidence in 0..1).

        Raises:
            RecognitionError: if the engine fails for any reason.
        """
