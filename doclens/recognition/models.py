from dataclasses import dataclass

from doclens.languages.catalog import Language


@dataclass(frozen=True)
class RecognizedText:
    """Output of the recognition stage for one page image."""

    text: str
    confidence: float
    language: Language | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
