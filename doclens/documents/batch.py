import uuid

from doclens.documents.models import Document, DocumentPage
from doclens.languages.catalog import Language
from doclens.logging.logger import Log


class PageBatch:
    """Pages collected before processing starts.

    Page numbers stay 1-based and contiguous: removing a page renumbers every
    page after it.
    """

    def __init__(self) -> None:
        self._pages: list[DocumentPage] = []

    @property
    def pages(self) -> tuple[DocumentPage, ...]:
        return tuple(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def add_image(self, image_bytes: bytes) -> DocumentPage:
        page = DocumentPage(image_bytes=image_bytes, page_number=len(self._pages) + 1)
        self._pages.append(page)
        Log.info(f"Added page {page.page_number}")
        return page

    def remove(self, page_id: uuid.UUID) -> None:
        """Drop a page and renumber the rest.

        Raises:
            KeyError: if no page in the batch has this id.
        """
        remaining = [page for page in self._pages if page.id != page_id]
        if len(remaining) == len(self._pages):
            raise KeyError(f"Page {page_id} is not in the batch")
        self._pages = [
            page.with_page_number(index)
            for index, page in enumerate(remaining, start=1)
        ]

    def clear(self) -> None:
        self._pages.clear()

    def to_document(self, source_language: Language, target_language: Language) -> Document:
        """Build a pending document from the collected pages.

        Raises:
            ValueError: if the batch is empty.
        """
        if not self._pages:
            raise ValueError("Cannot build a document from an empty page batch")
        return Document.create(self._pages, source_language, target_language)
