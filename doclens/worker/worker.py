import asyncio

from doclens.config.settings import Settings
from doclens.database.connection import get_connection
from doclens.database.models import JobRecord
from doclens.database.repositories.job_repository import JobRepository
from doclens.logging.logger import Log
from doclens.worker.job_runner import JobRunner


class Worker:
    """Claims queued translation jobs one at a time and hands them to the JobRunner."""

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._poll_interval = settings.job_poll_interval_seconds
        self._stopping = False

    def stop(self) -> None:
        """Finish the current job, then leave the loop."""
        self._stopping = True

    async def run(self, max_jobs: int | None = None) -> None:
        """Poll until stopped or interrupted, or until ``max_jobs`` jobs have run."""
        Log.info("Worker started, polling for jobs")
        processed = 0
        try:
            while not self._stopping and (max_jobs is None or processed < max_jobs):
                # Claiming blocks on the pool, keep it off the event loop.
                job = await asyncio.to_thread(self._try_claim_job)
                if job is None:
                    Log.debug("No jobs available, sleeping")
                    await asyncio.sleep(self._poll_interval)
                    continue
                await self._job_runner.run(job)
                processed += 1
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        Log.info(f"Worker stopped after {processed} jobs")

    def _try_claim_job(self) -> JobRecord | None:
        """Database errors are logged and treated as an empty queue; the next poll retries."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
