import signal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from doclens.config.settings import Settings
from doclens.config.user_settings import UserSettings
from doclens.main import build_worker, serve
from doclens.state.app_state import AppState
from doclens.state.model_records import InMemoryModelRecordStore
from doclens.worker.worker import Worker

pytestmark = pytest.mark.anyio


class TestServe:
    async def test_sigterm_handler_stops_worker(self) -> None:
        worker = MagicMock()
        worker.run = AsyncMock()
        loop = MagicMock()

        with patch("doclens.main.asyncio.get_running_loop", return_value=loop):
            await serve(worker, max_jobs=2)

        loop.add_signal_handler.assert_called_once_with(signal.SIGTERM, worker.stop)
        loop.remove_signal_handler.assert_called_once_with(signal.SIGTERM)
        worker.run.assert_awaited_once_with(max_jobs=2)

    async def test_handler_removed_when_worker_raises(self) -> None:
        worker = MagicMock()
        worker.run = AsyncMock(side_effect=RuntimeError("boom"))
        loop = MagicMock()

        with (
            patch("doclens.main.asyncio.get_running_loop", return_value=loop),
            pytest.raises(RuntimeError),
        ):
            await serve(worker)

        loop.remove_signal_handler.assert_called_once_with(signal.SIGTERM)


class TestBuildWorker:
    def test_wires_configured_backends(self, tmp_path: Path) -> None:
        settings = Settings(
            ocr_engine="example",
            translation_provider="example",
            language_identifier="fallback",
            storage_backend="json",
            data_dir=tmp_path,
        )
        app_state = AppState(MagicMock(), UserSettings(), InMemoryModelRecordStore())

        assert isinstance(build_worker(settings, app_state), Worker)
