import asyncio

from doclens.config.settings import Settings
from doclens.database.models import JobRecord
from doclens.database.repositories.job_repository import JobRepository
from doclens.documents.models import Document
from doclens.logging.logger import Log
from doclens.processor.pipeline import DocumentPipeline
from doclens.state.app_state import AppState
from doclens.storage.base import DocumentStore


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        pipeline: DocumentPipeline,
        store: DocumentStore,
        job_repo: JobRepository,
        app_state: AppState,
        settings: Settings,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._job_repo = job_repo
        self._app_state = app_state
        self._settings = settings

    async def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(f"Running job {job.id} (attempt {job.attempts + 1})")
        try:
            document = await asyncio.to_thread(self._store.find_by_id, job.document_id)
            result = await self._pipeline.process(
                document,
                timeout=self._settings.pipeline_timeout_seconds,
            )
        except Exception as exc:
            await self._handle_failure(job, exc, None)
            return

        if result.error is not None:
            await self._handle_failure(job, result.error, result.document)
            return

        try:
            await asyncio.to_thread(self._store.save, self._prepare_for_storage(result.document))
            await asyncio.to_thread(self._job_repo.mark_done, job.id)
        except Exception as exc:
            await self._handle_failure(job, exc, None)
            return
        Log.info(f"Job {job.id} completed successfully")

    def _prepare_for_storage(self, document: Document) -> Document:
        if self._app_state.user_settings.keep_original_images:
            return document
        return document.without_images()

    async def _handle_failure(
        self,
        job: JobRecord,
        exc: BaseException,
        failed_snapshot: Document | None,
    ) -> None:
        """Increment attempts; mark failed if at max, otherwise back to pending.

        The stored document stays pending between attempts so a retry can run
        the pipeline on it again; only the final failure is persisted.
        """
        Log.error(f"Job {job.id} failed: {exc}")
        if job.attempts + 1 >= self._settings.max_job_attempts:
            if failed_snapshot is not None:
                await asyncio.to_thread(
                    self._store.save, self._prepare_for_storage(failed_snapshot)
                )
            await asyncio.to_thread(self._job_repo.mark_failed, job.id, str(exc))
            Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
        else:
            await asyncio.to_thread(self._job_repo.increment_attempts, job.id, str(exc))
            Log.warning(f"Job {job.id} will be retried (attempt {job.attempts + 2})")
