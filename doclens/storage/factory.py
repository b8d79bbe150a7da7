from doclens.config.settings import Settings
from doclens.database.repositories.document_repository import PostgresDocumentStore
from doclens.database.repositories.state_repository import PostgresStateRepository
from doclens.state.repository import JsonStateRepository, StateRepository
from doclens.storage.base import DocumentStore
from doclens.storage.json_store import JsonDocumentStore


class StorageFactory:
    """Creates the document store and state repository for the configured backend."""

    BACKENDS: tuple[str, ...] = ("json", "postgres")

    @classmethod
    def create_document_store(cls, settings: Settings) -> DocumentStore:
        backend = cls._backend(settings)
        if backend == "postgres":
            return PostgresDocumentStore()
        return JsonDocumentStore(settings.data_dir)

    @classmethod
    def create_state_repository(cls, settings: Settings) -> StateRepository:
        backend = cls._backend(settings)
        if backend == "postgres":
            return PostgresStateRepository()
        return JsonStateRepository(settings.data_dir)

    @classmethod
    def _backend(cls, settings: Settings) -> str:
        backend = settings.storage_backend.lower()
        if backend not in cls.BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
            )
        return backend
