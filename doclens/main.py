import asyncio
import signal

from doclens.config.settings import Settings
from doclens.database.connection import close_pool, init_pool
from doclens.database.repositories.job_repository import JobRepository
from doclens.logging.logger import Log
from doclens.processor.pipeline import build_pipeline
from doclens.state.app_state import AppState
from doclens.storage.factory import StorageFactory
from doclens.translation.factory import build_tracker
from doclens.worker.job_runner import JobRunner
from doclens.worker.worker import Worker


def build_worker(settings: Settings, app_state: AppState) -> Worker:
    """Wire the pipeline, stores and job queue into a Worker."""
    tracker = build_tracker(settings, app_state.model_records)
    pipeline = build_pipeline(settings, tracker)
    store = StorageFactory.create_document_store(settings)
    job_repo = JobRepository(settings.max_job_attempts)
    job_runner = JobRunner(pipeline, store, job_repo, app_state, settings)
    return Worker(job_repo, job_runner, settings)


async def serve(worker: Worker, max_jobs: int | None = None) -> None:
    """Run the worker; SIGTERM lets the current job finish before exiting."""
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGTERM, worker.stop)
    try:
        await worker.run(max_jobs=max_jobs)
    finally:
        loop.remove_signal_handler(signal.SIGTERM)


def main() -> None:
    """Entry point: initialize pool -> load state -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    app_state: AppState | None = None
    try:
        app_state = AppState.load(StorageFactory.create_state_repository(settings))
        worker = build_worker(settings, app_state)
        asyncio.run(serve(worker))
    finally:
        if app_state is not None:
            app_state.flush()
        close_pool()


if __name__ == "__main__":
    main()
