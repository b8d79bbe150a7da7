import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from doclens.database.connection import get_connection
from doclens.documents.models import Document, DocumentPage, ProcessingStatus
from doclens.languages.catalog import find_language
from doclens.logging.logger import Log
from doclens.storage.base import DocumentStore
from doclens.storage.exceptions import DocumentNotFoundError, StorageError


class PostgresDocumentStore(DocumentStore):
    """Database operations for the documents and document_pages tables."""

    def save(self, document: Document) -> None:
        try:
            with get_connection() as conn:
                with conn.transaction():
                    conn.execute(
                        """
                        INSERT INTO documents
                            (id, source_language, target_language, status, created_at)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (id) DO UPDATE
                        SET source_language = EXCLUDED.source_language,
                            target_language = EXCLUDED.target_language,
                            status = EXCLUDED.status,
                            updated_at = NOW()
                        """,
                        (
                            document.id,
                            document.source_language.code,
                            document.target_language.code,
                            document.status.value,
                            document.created_at,
                        ),
                    )
                    conn.execute(
                        "DELETE FROM document_pages WHERE document_id = %s",
                        (document.id,),
                    )
                    with conn.cursor() as cur:
                        cur.executemany(
                            """
                            INSERT INTO document_pages
                                (id, document_id, page_number, image,
                                 recognized_text, translated_text)
                            VALUES (%s, %s, %s, %s, %s, %s)
                            """,
                            [
                                (
                                    page.id,
                                    document.id,
                                    page.page_number,
                                    page.image_bytes,
                                    page.recognized_text,
                                    page.translated_text,
                                )
                                for page in document.pages
                            ],
                        )
        except psycopg.Error as exc:
            Log.error(f"Failed to save document {document.id}: {exc}")
            raise StorageError(f"Failed to save document {document.id}: {exc}") from exc
        Log.debug(f"Saved document {document.id} ({document.status.value})")

    def fetch_all(self) -> list[Document]:
        return self._select("ORDER BY created_at DESC", ())

    def find_by_id(self, document_id: uuid.UUID) -> Document:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        documents = self._select("WHERE id = %s", (document_id,))
        if not documents:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return documents[0]

    def delete(self, document_id: uuid.UUID) -> None:
        self._execute("DELETE FROM documents WHERE id = %s", (document_id,))

    def clear_all(self) -> None:
        self._execute("DELETE FROM documents", ())
        Log.info("Cleared all documents")

    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        try:
            with get_connection() as conn:
                conn.execute(sql, params)
                conn.commit()
        except psycopg.Error as exc:
            raise StorageError(f"Document store query failed: {exc}") from exc

    def _select(self, clause: str, params: tuple[Any, ...]) -> list[Document]:
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        "SELECT id, source_language, target_language, status, created_at "
                        f"FROM documents {clause}",
                        params,
                    )
                    rows = cur.fetchall()
                    ids = [row["id"] for row in rows]
                    cur.execute(
                        """
                        SELECT id, document_id, page_number, image,
                               recognized_text, translated_text
                        FROM document_pages
                        WHERE document_id = ANY(%s)
                        ORDER BY document_id, page_number
                        """,
                        (ids,),
                    )
                    page_rows = cur.fetchall()
        except psycopg.Error as exc:
            raise StorageError(f"Document store query failed: {exc}") from exc

        pages: dict[uuid.UUID, list[DocumentPage]] = {}
        for row in page_rows:
            pages.setdefault(row["document_id"], []).append(
                DocumentPage(
                    id=row["id"],
                    page_number=row["page_number"],
                    image_bytes=bytes(row["image"]),
                    recognized_text=row["recognized_text"],
                    translated_text=row["translated_text"],
                )
            )
        return [self._to_document(row, pages.get(row["id"], [])) for row in rows]

    @staticmethod
    def _to_document(row: dict[str, Any], pages: list[DocumentPage]) -> Document:
        source = find_language(row["source_language"])
        target = find_language(row["target_language"])
        if source is None or target is None:
            raise StorageError(
                f"Document {row['id']} has unknown languages: "
                f"{row['source_language']!r}, {row['target_language']!r}"
            )
        try:
            return Document(
                id=row["id"],
                pages=tuple(pages),
                source_language=source,
                target_language=target,
                status=ProcessingStatus(row["status"]),
                created_at=row["created_at"],
            )
        except ValueError as exc:
            raise StorageError(f"Document {row['id']} is malformed: {exc}") from exc
