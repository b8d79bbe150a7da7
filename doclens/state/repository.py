from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from doclens.config.user_settings import UserSettings
from doclens.logging.logger import Log
from doclens.storage.exceptions import StorageError
from doclens.storage.json_store import read_json, write_json_atomic


class StateRepository(ABC):
    """Persistence for process-wide user settings and downloaded-model records."""

    @abstractmethod
    def load_user_settings(self) -> UserSettings:
        """Stored settings, or defaults when nothing has been saved yet."""

    @abstractmethod
    def save_user_settings(self, settings: UserSettings) -> None: ...

    @abstractmethod
    def load_model_codes(self) -> set[str]: ...

    @abstractmethod
    def save_model_codes(self, codes: frozenset[str]) -> None: ...


def parse_user_settings(payload: object) -> UserSettings:
    """Validate a stored settings payload.

    Raises:
        StorageError: if the payload does not describe valid settings.
    """
    if payload is None:
        return UserSettings()
    try:
        return UserSettings.model_validate(payload)
    except ValidationError as exc:
        raise StorageError(f"Stored user settings are invalid: {exc}") from exc


class JsonStateRepository(StateRepository):
    """Settings and model records in one JSON file."""

    FILE_NAME = "state.json"

    def __init__(self, data_dir: Path) -> None:
        self._path = Path(data_dir) / self.FILE_NAME

    def load_user_settings(self) -> UserSettings:
        return parse_user_settings(self._read().get("user_settings"))

    def save_user_settings(self, settings: UserSettings) -> None:
        payload = self._read()
        payload["user_settings"] = settings.model_dump(mode="json")
        write_json_atomic(self._path, payload)
        Log.debug("User settings saved")

    def load_model_codes(self) -> set[str]:
        codes = self._read().get("downloaded_models", [])
        if not isinstance(codes, list) or not all(isinstance(code, str) for code in codes):
            raise StorageError(f"{self._path}: downloaded_models must be a list of codes")
        return set(codes)

    def save_model_codes(self, codes: frozenset[str]) -> None:
        payload = self._read()
        payload["downloaded_models"] = sorted(codes)
        write_json_atomic(self._path, payload)
        Log.debug(f"Model records saved: {sorted(codes)}")

    def _read(self) -> dict[str, object]:
        payload = read_json(self._path, {})
        if not isinstance(payload, dict):
            raise StorageError(f"{self._path} does not hold a state object")
        return payload
