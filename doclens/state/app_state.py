from doclens.config.user_settings import UserSettings
from doclens.logging.logger import Log
from doclens.state.model_records import InMemoryModelRecordStore
from doclens.state.repository import StateRepository


class AppState:
    """Process-wide settings and model records.

    Loaded once at start, passed explicitly to the components that need it,
    and flushed back to its repository at shutdown.
    """

    def __init__(
        self,
        repository: StateRepository,
        user_settings: UserSettings,
        model_records: InMemoryModelRecordStore,
    ) -> None:
        self._repository = repository
        self._user_settings = user_settings
        self._settings_dirty = False
        self.model_records = model_records

    @classmethod
    def load(cls, repository: StateRepository) -> "AppState":
        user_settings = repository.load_user_settings()
        codes = repository.load_model_codes()
        Log.info(f"Application state loaded: {len(codes)} downloaded models")
        return cls(repository, user_settings, InMemoryModelRecordStore(codes))

    @property
    def user_settings(self) -> UserSettings:
        return self._user_settings

    def update_user_settings(self, user_settings: UserSettings) -> None:
        if user_settings != self._user_settings:
            self._user_settings = user_settings
            self._settings_dirty = True

    def flush(self) -> None:
        """Write back whatever changed since load or the previous flush."""
        if self._settings_dirty:
            self._repository.save_user_settings(self._user_settings)
            self._settings_dirty = False
        if self.model_records.dirty:
            self._repository.save_model_codes(self.model_records.codes())
            self.model_records.dirty = False
        Log.debug("Application state flushed")
