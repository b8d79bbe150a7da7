import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from doclens.languages.catalog import Language
from doclens.processor.exceptions import InvalidStatusTransitionError


class ProcessingStatus(str, Enum):
    """Progress of a document through the pipeline."""

    PENDING = "pending"
    RECOGNIZING = "recognizing"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def display_text(self) -> str:
        return _DISPLAY_TEXT[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, other: "ProcessingStatus") -> bool:
        return other in _TRANSITIONS[self]


_DISPLAY_TEXT: dict[ProcessingStatus, str] = {
    ProcessingStatus.PENDING: "Pending",
    ProcessingStatus.RECOGNIZING: "Recognizing text...",
    ProcessingStatus.TRANSLATING: "Translating...",
    ProcessingStatus.COMPLETED: "Completed",
    ProcessingStatus.FAILED: "Failed",
}

_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.RECOGNIZING}),
    ProcessingStatus.RECOGNIZING: frozenset(
        {ProcessingStatus.TRANSLATING, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.TRANSLATING: frozenset(
        {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class DocumentPage:
    """A single captured or imported page image and the text derived from it."""

    image_bytes: bytes
    page_number: int
    recognized_text: str | None = None
    translated_text: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be positive, got {self.page_number}")

    def with_recognized_text(self, text: str) -> "DocumentPage":
        """Return a copy carrying OCR output. The field is written exactly once."""
        if self.recognized_text is not None:
            raise ValueError(f"Page {self.page_number} already has recognized text")
        return replace(self, recognized_text=text)

    def with_translated_text(self, text: str) -> "DocumentPage":
        """Return a copy carrying the translation. The field is written exactly once."""
        if self.translated_text is not None:
            raise ValueError(f"Page {self.page_number} already has translated text")
        return replace(self, translated_text=text)

    def with_page_number(self, page_number: int) -> "DocumentPage":
        return replace(self, page_number=page_number)

    @property
    def has_text(self) -> bool:
        return self.recognized_text is not None or self.translated_text is not None


@dataclass(frozen=True)
class Document:
    """A multi-page document translated from ``source_language`` into ``target_language``.

    Instances are immutable snapshots. Every change goes through one of the
    ``with_*`` helpers and yields a new value, so a caller holding an older
    snapshot never observes later pipeline progress.
    """

    pages: tuple[DocumentPage, ...]
    source_language: Language
    target_language: Language
    status: ProcessingStatus = ProcessingStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        pages = tuple(self.pages)
        object.__setattr__(self, "pages", pages)
        numbers = [page.page_number for page in pages]
        if numbers != list(range(1, len(pages) + 1)):
            raise ValueError(f"Pages must be numbered 1..{len(pages)} in order, got {numbers}")

    @classmethod
    def create(
        cls,
        pages: Iterable[DocumentPage],
        source_language: Language,
        target_language: Language,
    ) -> "Document":
        """Build a new pending document with a fresh id and creation time."""
        return cls(
            pages=tuple(pages),
            source_language=source_language,
            target_language=target_language,
        )

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def is_complete(self) -> bool:
        return self.status is ProcessingStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status is ProcessingStatus.FAILED

    @property
    def thumbnail_page(self) -> DocumentPage | None:
        return self.pages[0] if self.pages else None

    @property
    def is_display_ready(self) -> bool:
        """True only for completed documents whose every page has both texts."""
        return self.is_complete and all(
            page.recognized_text is not None and page.translated_text is not None
            for page in self.pages
        )

    def with_status(self, status: ProcessingStatus) -> "Document":
        """Return a copy in ``status``.

        Raises:
            InvalidStatusTransitionError: if the state machine forbids the move.
        """
        if not self.status.can_transition_to(status):
            raise InvalidStatusTransitionError(
                f"Document {self.id} cannot move from {self.status.value} to {status.value}"
            )
        return replace(self, status=status)

    def with_pages(self, pages: Iterable[DocumentPage]) -> "Document":
        return replace(self, pages=tuple(pages))

    def without_images(self) -> "Document":
        """Return a copy whose pages keep their text but drop the image payload."""
        return self.with_pages(replace(page, image_bytes=b"") for page in self.pages)
