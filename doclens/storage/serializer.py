"""Conversion between Document values and plain JSON-compatible records.

Binary page images are base64 encoded; absent page text is an explicit
``None`` (JSON ``null``), never an empty string.
"""

import base64
import binascii
import uuid
from datetime import datetime, timezone
from typing import Any

from doclens.documents.models import Document, DocumentPage, ProcessingStatus
from doclens.languages.catalog import Language, find_language
from doclens.storage.exceptions import StorageError


def document_to_record(document: Document) -> dict[str, Any]:
    return {
        "id": str(document.id),
        "created_at": document.created_at.isoformat(),
        "status": document.status.value,
        "source_language": document.source_language.code,
        "target_language": document.target_language.code,
        "pages": [page_to_record(page) for page in document.pages],
    }


def page_to_record(page: DocumentPage) -> dict[str, Any]:
    return {
        "id": str(page.id),
        "page_number": page.page_number,
        "image": base64.b64encode(page.image_bytes).decode("ascii"),
        "recognized_text": page.recognized_text,
        "translated_text": page.translated_text,
    }


def document_from_record(record: dict[str, Any]) -> Document:
    """Rebuild a Document from a stored record.

    Raises:
        StorageError: if the record is incomplete or holds invalid values.
    """
    try:
        pages = sorted(
            (page_from_record(page) for page in record["pages"]),
            key=lambda page: page.page_number,
        )
        created_at = datetime.fromisoformat(record["created_at"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Document(
            id=uuid.UUID(record["id"]),
            pages=tuple(pages),
            source_language=_language(record["source_language"]),
            target_language=_language(record["target_language"]),
            status=ProcessingStatus(record["status"]),
            created_at=created_at,
        )
    except StorageError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StorageError(f"Malformed document record: {exc}") from exc


def page_from_record(record: dict[str, Any]) -> DocumentPage:
    try:
        image_bytes = base64.b64decode(record["image"], validate=True)
    except (binascii.Error, TypeError) as exc:
        raise StorageError(f"Malformed page image: {exc}") from exc
    return DocumentPage(
        id=uuid.UUID(record["id"]),
        page_number=int(record["page_number"]),
        image_bytes=image_bytes,
        recognized_text=_optional_text(record["recognized_text"]),
        translated_text=_optional_text(record["translated_text"]),
    )


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise StorageError(f"Page text must be a string or null, got {type(value).__name__}")


def _language(code: Any) -> Language:
    language = find_language(code) if isinstance(code, str) else None
    if language is None:
        raise StorageError(f"Unknown language code in record: {code!r}")
    return language
