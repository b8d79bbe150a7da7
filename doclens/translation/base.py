from abc import ABC, abstractmethod
from collections.abc import Callable

ProgressCallback = Callable[[float], None]


class BaseTranslationBackend(ABC):
    """Contract for all translation engine adapters."""

    @abstractmethod
    def supports(self, language_code: str) -> bool:
        """Return True if the engine has a mapping for this catalog code."""

    @abstractmethod
    async def translate(self, text: str, source_code: str, target_code: str) -> str:
        """Translate text between two concrete (non-auto) language codes.

        Raises:
            TranslationError: on any engine failure.
        """

    @abstractmethod
    async def is_model_downloaded(self, language_code: str) -> bool:
        """Authoritative check whether the model for this code is available locally."""

    @abstractmethod
    async def download_model(
        self,
        language_code: str,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Fetch the model for this code, reporting progress in 0..1.

        Returns only once the model is fully usable.

        Raises:
            ModelDownloadError: if the download fails or is interrupted.
        """

    @abstractmethod
    async def delete_model(self, language_code: str) -> None:
        """Free the local model for this code."""
