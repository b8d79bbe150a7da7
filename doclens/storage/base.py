import uuid
from abc import ABC, abstractmethod

from doclens.documents.models import Document


class DocumentStore(ABC):
    """Persistence contract for processed documents. Used by pipeline callers, not the pipeline."""

    @abstractmethod
    def save(self, document: Document) -> None:
        """Insert or replace the document with the same id."""

    @abstractmethod
    def fetch_all(self) -> list[Document]:
        """All documents, newest ``created_at`` first."""

    @abstractmethod
    def find_by_id(self, document_id: uuid.UUID) -> Document:
        """Raises DocumentNotFoundError if no document has this id."""

    @abstractmethod
    def delete(self, document_id: uuid.UUID) -> None:
        """Remove a document. Unknown ids are ignored."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every document."""

    def search(self, query: str) -> list[Document]:
        """Documents whose page text or language names contain ``query``, case-insensitively."""
        needle = query.strip().lower()
        documents = self.fetch_all()
        if not needle:
            return documents
        return [document for document in documents if matches(document, needle)]


def matches(document: Document, needle: str) -> bool:
    haystacks = [
        document.source_language.display_name,
        document.target_language.display_name,
    ]
    for page in document.pages:
        haystacks.extend(
            text for text in (page.recognized_text, page.translated_text) if text is not None
        )
    return any(needle in haystack.lower() for haystack in haystacks)


def newest_first(documents: list[Document]) -> list[Document]:
    return sorted(documents, key=lambda document: document.created_at, reverse=True)
