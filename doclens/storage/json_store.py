import json
import os
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any

from doclens.documents.models import Document
from doclens.logging.logger import Log
from doclens.storage.base import DocumentStore, newest_first
from doclens.storage.exceptions import DocumentNotFoundError, StorageError
from doclens.storage.serializer import document_from_record, document_to_record


def read_json(path: Path, default: Any) -> Any:
    """Load a JSON file, returning ``default`` when it does not exist yet.

    Raises:
        StorageError: if the file cannot be read or parsed.
    """
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise StorageError(f"Failed to read {path}: {exc}") from exc


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write ``payload`` to a temp file beside ``path`` and rename it into place.

    Raises:
        StorageError: if the file cannot be written.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f"Failed to write {path}: {exc}") from exc


class JsonDocumentStore(DocumentStore):
    """Keeps every document record in a single JSON file."""

    FILE_NAME = "documents.json"

    def __init__(self, data_dir: Path) -> None:
        self._path = Path(data_dir) / self.FILE_NAME
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, document: Document) -> None:
        with self._lock:
            records = [r for r in self._load_records() if r.get("id") != str(document.id)]
            records.append(document_to_record(document))
            self._write(records)
        Log.debug(f"Saved document {document.id} ({document.status.value})")

    def fetch_all(self) -> list[Document]:
        with self._lock:
            records = self._load_records()
        return newest_first([document_from_record(record) for record in records])

    def find_by_id(self, document_id: uuid.UUID) -> Document:
        with self._lock:
            records = self._load_records()
        for record in records:
            if record.get("id") == str(document_id):
                return document_from_record(record)
        raise DocumentNotFoundError(f"Document {document_id} not found")

    def delete(self, document_id: uuid.UUID) -> None:
        with self._lock:
            records = self._load_records()
            remaining = [r for r in records if r.get("id") != str(document_id)]
            if len(remaining) != len(records):
                self._write(remaining)
                Log.debug(f"Deleted document {document_id}")

    def clear_all(self) -> None:
        with self._lock:
            self._write([])
        Log.info("Cleared all documents")

    def _load_records(self) -> list[dict[str, Any]]:
        payload = read_json(self._path, [])
        if not isinstance(payload, list):
            raise StorageError(f"{self._path} does not hold a list of documents")
        return payload

    def _write(self, records: list[dict[str, Any]]) -> None:
        try:
            write_json_atomic(self._path, records)
        except StorageError as exc:
            Log.error(f"Document store write failed: {exc}")
            raise
