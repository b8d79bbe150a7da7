from abc import ABC, abstractmethod
from collections.abc import Iterable


class ModelRecordStore(ABC):
    """Durable record of which language models finished downloading."""

    @abstractmethod
    def contains(self, language_code: str) -> bool:
        """Return True if the model for this code is recorded as downloaded."""

    @abstractmethod
    def add(self, language_code: str) -> None:
        """Record a completed download."""

    @abstractmethod
    def discard(self, language_code: str) -> None:
        """Forget a model. Unknown codes are ignored."""

    @abstractmethod
    def codes(self) -> frozenset[str]:
        """All recorded language codes."""


class InMemoryModelRecordStore(ModelRecordStore):
    """Record set held in memory and flushed by AppState at shutdown."""

    def __init__(self, codes: Iterable[str] = ()) -> None:
        self._codes: set[str] = set(codes)
        self.dirty = False

    def contains(self, language_code: str) -> bool:
        return language_code in self._codes

    def add(self, language_code: str) -> None:
        if language_code not in self._codes:
            self._codes.add(language_code)
            self.dirty = True

    def discard(self, language_code: str) -> None:
        if language_code in self._codes:
            self._codes.discard(language_code)
            self.dirty = True

    def codes(self) -> frozenset[str]:
        return frozenset(self._codes)
