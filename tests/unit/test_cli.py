from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from doclens.cli import app
from doclens.documents.models import ProcessingStatus
from doclens.recognition.example_adapter import ExampleOcrAdapter
from doclens.state.repository import JsonStateRepository
from doclens.storage.exceptions import StorageError
from doclens.storage.json_store import JsonDocumentStore

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("OCR_ENGINE", "example")
    monkeypatch.setenv("TRANSLATION_PROVIDER", "example")
    monkeypatch.setenv("LANGUAGE_IDENTIFIER", "fallback")
    return tmp_path / "data"


@pytest.fixture
def scan(tmp_path: Path, sample_png_bytes: bytes) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(sample_png_bytes)
    return path


class TestTranslateCommand:
    def test_translates_and_stores_document(self, cli_env: Path, scan: Path) -> None:
        result = runner.invoke(app, ["translate", str(scan), "--source", "es", "--target", "en"])

        assert result.exit_code == 0, result.output
        documents = JsonDocumentStore(cli_env).fetch_all()
        assert len(documents) == 1
        page = documents[0].pages[0]
        assert documents[0].status is ProcessingStatus.COMPLETED
        assert page.recognized_text == ExampleOcrAdapter.SAMPLE_TEXT
        assert page.translated_text == f"[en] {ExampleOcrAdapter.SAMPLE_TEXT}"

    def test_download_is_recorded_in_state(self, cli_env: Path, scan: Path) -> None:
        runner.invoke(app, ["translate", str(scan), "--source", "es", "--target", "en"])

        assert "es" in JsonStateRepository(cli_env).load_model_codes()

    def test_unknown_language_exits_with_error(self, cli_env: Path, scan: Path) -> None:
        result = runner.invoke(app, ["translate", str(scan), "--source", "xx"])

        assert result.exit_code == 1
        assert "Unsupported language" in result.output

    def test_enqueue_requires_postgres(self, cli_env: Path, scan: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("doclens.cli.init_pool", lambda settings: None)
        monkeypatch.setattr("doclens.cli.close_pool", lambda: None)

        result = runner.invoke(app, ["translate", str(scan), "--enqueue"])

        assert result.exit_code == 1
        assert "requires STORAGE_BACKEND=postgres" in result.output

    def test_enqueue_storage_failure_exits_with_message(
        self, cli_env: Path, scan: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        monkeypatch.setattr("doclens.cli.init_pool", lambda settings: None)
        monkeypatch.setattr("doclens.cli.close_pool", lambda: None)
        factory = MagicMock()
        factory.create_state_repository.return_value = JsonStateRepository(cli_env)
        factory.create_document_store.return_value.save.side_effect = StorageError(
            "connection refused"
        )
        monkeypatch.setattr("doclens.cli.StorageFactory", factory)

        result = runner.invoke(app, ["translate", str(scan), "--enqueue"])

        assert result.exit_code == 1
        assert "Could not queue document: connection refused" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


class TestDocumentsCommands:
    def test_list_empty(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["documents", "list"])
        assert result.exit_code == 0
        assert "No documents stored" in result.output

    def test_search_and_delete(self, cli_env: Path, scan: Path) -> None:
        runner.invoke(app, ["translate", str(scan), "--source", "es", "--target", "en"])
        document = JsonDocumentStore(cli_env).fetch_all()[0]

        search = runner.invoke(app, ["documents", "search", "sample recognized"])
        assert search.exit_code == 0
        assert "No documents match" not in search.output
        miss = runner.invoke(app, ["documents", "search", "zebra"])
        assert "No documents match" in miss.output

        delete = runner.invoke(app, ["documents", "delete", str(document.id)])
        assert delete.exit_code == 0
        assert JsonDocumentStore(cli_env).fetch_all() == []

    def test_show_missing_document(self, cli_env: Path) -> None:
        result = runner.invoke(
            app, ["documents", "show", "550e8400-e29b-41d4-a716-446655440000"]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_clear_with_yes(self, cli_env: Path, scan: Path) -> None:
        runner.invoke(app, ["translate", str(scan), "--source", "es", "--target", "en"])
        result = runner.invoke(app, ["documents", "clear", "--yes"])
        assert result.exit_code == 0
        assert JsonDocumentStore(cli_env).fetch_all() == []


class TestModelsCommands:
    def test_download_then_delete(self, cli_env: Path) -> None:
        download = runner.invoke(app, ["models", "download", "fr"])
        assert download.exit_code == 0, download.output
        assert "fr" in JsonStateRepository(cli_env).load_model_codes()

        delete = runner.invoke(app, ["models", "delete", "fr"])
        assert delete.exit_code == 0, delete.output
        assert "fr" not in JsonStateRepository(cli_env).load_model_codes()

    def test_list_shows_languages(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["models", "list"])
        assert result.exit_code == 0
        assert "Spanish" in result.output


class TestSettingsCommands:
    def test_set_languages_and_swap(self, cli_env: Path) -> None:
        set_result = runner.invoke(app, ["settings", "languages", "es", "fr"])
        assert set_result.exit_code == 0, set_result.output

        swap = runner.invoke(app, ["settings", "swap"])
        assert swap.exit_code == 0

        settings = JsonStateRepository(cli_env).load_user_settings()
        assert settings.source_language == "fr"
        assert settings.target_language == "es"

    def test_auto_target_rejected(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["settings", "languages", "es", "auto"])
        assert result.exit_code == 1

    def test_auto_detect_toggle(self, cli_env: Path) -> None:
        runner.invoke(app, ["settings", "languages", "es", "en"])
        result = runner.invoke(app, ["settings", "auto-detect", "true"])
        assert result.exit_code == 0
        assert JsonStateRepository(cli_env).load_user_settings().source_language == "auto"
