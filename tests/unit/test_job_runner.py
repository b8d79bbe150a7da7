import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from doclens.config.user_settings import UserSettings
from doclens.database.models import JobRecord, JobStatus
from doclens.documents.models import Document, DocumentPage, ProcessingStatus
from doclens.languages.catalog import ENGLISH, SPANISH
from doclens.processor.pipeline import PipelineResult
from doclens.recognition.exceptions import RecognitionError
from doclens.worker.job_runner import JobRunner

pytestmark = pytest.mark.anyio

DOCUMENT_ID = uuid.UUID("550e8400-e29b-41d4-a716-446655440000")


def _make_document(status: ProcessingStatus = ProcessingStatus.PENDING) -> Document:
    page = DocumentPage(image_bytes=b"jpeg", page_number=1)
    document = Document(pages=(page,), source_language=SPANISH, target_language=ENGLISH, id=DOCUMENT_ID)
    if status is ProcessingStatus.PENDING:
        return document
    document = document.with_status(ProcessingStatus.RECOGNIZING)
    return document.with_status(status)


def _make_runner(
    max_attempts: int = 3,
    keep_original_images: bool = True,
) -> tuple[JobRunner, MagicMock, MagicMock, MagicMock]:
    """Create a JobRunner with mocked dependencies."""
    mock_pipeline = MagicMock()
    mock_pipeline.process = AsyncMock()
    mock_store = MagicMock()
    mock_store.find_by_id.return_value = _make_document()
    mock_repo = MagicMock()
    app_state = MagicMock(user_settings=UserSettings(keep_original_images=keep_original_images))
    settings = MagicMock(max_job_attempts=max_attempts, pipeline_timeout_seconds=None)
    runner = JobRunner(mock_pipeline, mock_store, mock_repo, app_state, settings)
    return runner, mock_pipeline, mock_store, mock_repo


def _make_job(attempts: int = 0) -> JobRecord:
    return JobRecord(
        id=1, document_id=DOCUMENT_ID, status=JobStatus.PROCESSING, attempts=attempts
    )


def _completed() -> PipelineResult:
    recognizing = _make_document().with_status(ProcessingStatus.RECOGNIZING)
    page = recognizing.pages[0].with_recognized_text("Hola").with_translated_text("[en] Hola")
    translating = recognizing.with_pages([page]).with_status(ProcessingStatus.TRANSLATING)
    return PipelineResult(document=translating.with_status(ProcessingStatus.COMPLETED))


def _failed() -> PipelineResult:
    return PipelineResult(
        document=_make_document(ProcessingStatus.FAILED),
        error=RecognitionError("blurry"),
        failed_page=1,
        phase=ProcessingStatus.RECOGNIZING,
    )


class TestSuccessfulProcessing:
    async def test_runs_pipeline_on_stored_document(self) -> None:
        runner, mock_pipeline, mock_store, _repo = _make_runner()
        mock_pipeline.process.return_value = _completed()

        await runner.run(_make_job())

        mock_store.find_by_id.assert_called_once_with(DOCUMENT_ID)
        mock_pipeline.process.assert_awaited_once_with(mock_store.find_by_id.return_value, timeout=None)

    async def test_saves_completed_document_and_marks_done(self) -> None:
        runner, mock_pipeline, mock_store, mock_repo = _make_runner()
        result = _completed()
        mock_pipeline.process.return_value = result

        await runner.run(_make_job())

        mock_store.save.assert_called_once_with(result.document)
        mock_repo.mark_done.assert_called_once_with(1)

    async def test_strips_images_when_not_kept(self) -> None:
        runner, mock_pipeline, mock_store, _repo = _make_runner(keep_original_images=False)
        mock_pipeline.process.return_value = _completed()

        await runner.run(_make_job())

        saved = mock_store.save.call_args.args[0]
        assert saved.pages[0].image_bytes == b""
        assert saved.pages[0].translated_text == "[en] Hola"


class TestFailureBelowMax:
    async def test_increments_attempts(self) -> None:
        runner, mock_pipeline, mock_store, mock_repo = _make_runner(max_attempts=3)
        mock_pipeline.process.return_value = _failed()

        await runner.run(_make_job(attempts=0))

        mock_repo.increment_attempts.assert_called_once_with(1, "blurry")
        mock_repo.mark_failed.assert_not_called()
        mock_store.save.assert_not_called()

    async def test_exception_is_retried(self) -> None:
        runner, mock_pipeline, _store, mock_repo = _make_runner(max_attempts=3)
        mock_pipeline.process.side_effect = Exception("boom")

        await runner.run(_make_job(attempts=1))

        mock_repo.increment_attempts.assert_called_once_with(1, "boom")
        mock_repo.mark_done.assert_not_called()


class TestFailureAtMax:
    async def test_saves_failed_snapshot_and_marks_failed(self) -> None:
        runner, mock_pipeline, mock_store, mock_repo = _make_runner(max_attempts=3)
        result = _failed()
        mock_pipeline.process.return_value = result

        await runner.run(_make_job(attempts=2))

        mock_store.save.assert_called_once_with(result.document)
        mock_repo.mark_failed.assert_called_once_with(1, "blurry")
        mock_repo.increment_attempts.assert_not_called()

    async def test_missing_document_marks_failed(self) -> None:
        runner, _pipeline, mock_store, mock_repo = _make_runner(max_attempts=1)
        mock_store.find_by_id.side_effect = Exception("not found")

        await runner.run(_make_job(attempts=0))

        mock_repo.mark_failed.assert_called_once_with(1, "not found")
        mock_store.save.assert_not_called()
