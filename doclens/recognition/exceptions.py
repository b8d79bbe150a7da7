class RecognitionError(Exception):
    """Raised when the OCR backend fails to recognize text in a page image."""
