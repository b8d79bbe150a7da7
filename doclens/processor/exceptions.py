class ProcessorError(Exception):
    """Base exception for all pipeline-related errors."""


class InvalidStatusTransitionError(ProcessorError):
    """Raised when a document status change is not allowed by the state machine."""


class InvalidDocumentError(ProcessorError):
    """Raised when a document cannot enter the pipeline as given."""


class DataIntegrityError(ProcessorError):
    """Raised when a page reaches translation without recognized text."""
