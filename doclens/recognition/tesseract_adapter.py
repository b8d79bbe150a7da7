import asyncio
import io
from typing import Any, ClassVar

import pytesseract
from PIL import Image

from doclens.logging.logger import Log
from doclens.recognition.base import BaseOcrBackend
from doclens.recognition.exceptions import RecognitionError
from doclens.recognition.variants import RecognizerVariant, recognizer_variant_for


class TesseractOcrAdapter(BaseOcrBackend):
    """Recognizes page images with the Tesseract engine via pytesseract."""

    TESSERACT_LANGUAGES: ClassVar[dict[RecognizerVariant, str]] = {
        RecognizerVariant.LATIN: "eng",
        RecognizerVariant.CHINESE: "chi_sim",
        RecognizerVariant.DEVANAGARI: "hin",
        RecognizerVariant.JAPANESE: "jpn",
        RecognizerVariant.KOREAN: "kor",
    }

    def __init__(self, tesseract_cmd: str = "") -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    async def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
    ) -> tuple[str, float]:
        variant = recognizer_variant_for(language_hint)
        lang = self.TESSERACT_LANGUAGES[variant]
        return await asyncio.to_thread(self._recognize_sync, image_bytes, lang)

    def _recognize_sync(self, image_bytes: bytes, lang: str) -> tuple[str, float]:
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                data = pytesseract.image_to_data(
                    image,
                    lang=lang,
                    output_type=pytesseract.Output.DICT,
                )
        except Exception as exc:
            raise RecognitionError(f"tesseract recognition failed: {exc}") from exc

        text, confidence = self._assemble(data)
        Log.debug(f"Tesseract ({lang}) recognized {len(text)} chars, confidence {confidence:.2f}")
        return text, confidence

    @staticmethod
    def _assemble(data: dict[str, list[Any]]) -> tuple[str, float]:
        """Rebuild lines and paragraphs from word-level output; average word confidence."""
        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []
        for i, raw_word in enumerate(data["text"]):
            word = str(raw_word).strip()
            if not word:
                continue
            key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
            lines.setdefault(key, []).append(word)
            conf = float(data["conf"][i])
            if conf >= 0:
                confidences.append(conf / 100.0)

        chunks: list[str] = []
        previous_paragraph: tuple[int, int] | None = None
        for (block, paragraph, _line), words in lines.items():
            if previous_paragraph is not None and (block, paragraph) != previous_paragraph:
                chunks.append("")
            chunks.append(" ".join(words))
            previous_paragraph = (block, paragraph)

        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return "\n".join(chunks), confidence
