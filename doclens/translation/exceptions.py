class TranslationError(Exception):
    """Raised when the translation backend fails for a piece of text."""


class ModelDownloadError(TranslationError):
    """Raised when a translation model download fails or is interrupted."""
