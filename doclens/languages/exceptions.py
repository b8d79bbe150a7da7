from doclens.translation.exceptions import TranslationError


class UnsupportedLanguageError(TranslationError):
    """Raised when a language code has no catalog entry or backend mapping."""
