class StorageError(Exception):
    """Raised when the persistence layer fails to read or write documents."""


class DocumentNotFoundError(StorageError):
    """Raised when a document cannot be found in the store."""
