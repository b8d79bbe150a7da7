from doclens.config.settings import Settings
from doclens.recognition.base import BaseOcrBackend
from doclens.recognition.example_adapter import ExampleOcrAdapter
from doclens.recognition.tesseract_adapter import TesseractOcrAdapter


class OcrBackendFactory:
    """Creates the OCR backend selected in settings."""

    ENGINES: tuple[str, ...] = ("tesseract", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrBackend:
        engine = settings.ocr_engine.lower()
        if engine == "tesseract":
            return TesseractOcrAdapter(tesseract_cmd=settings.tesseract_cmd)
        if engine == "example":
            return ExampleOcrAdapter()
        raise ValueError(f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}")
