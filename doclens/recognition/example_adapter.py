"""Example OCR adapter.

No engine calls. Useful for local development, tests, and as a template for
new OCR adapters: implement BaseOcrBackend and register it in OcrBackendFactory.
"""

from typing import ClassVar

from doclens.recognition.base import BaseOcrBackend


class ExampleOcrAdapter(BaseOcrBackend):
    """Returns the same sample text for every image."""

    SAMPLE_TEXT: ClassVar[str] = (
        "This is sample recognized text from the image.\n\n"
        "It contains multiple lines and paragraphs to simulate real OCR output."
    )
    CONFIDENCE: ClassVar[float] = 0.95

    async def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
    ) -> tuple[str, float]:
        _ = image_bytes, language_hint
        return self.SAMPLE_TEXT, self.CONFIDENCE
