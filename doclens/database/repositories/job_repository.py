import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from doclens.database.connection import get_connection
from doclens.database.models import JobRecord, JobStatus

_COLUMNS = "id, document_id, status, attempts, error_message, locked_at, created_at, updated_at"


class JobRepository:
    """The translation_jobs queue."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def enqueue(self, document_id: uuid.UUID) -> JobRecord:
        """Queue a stored pending document for the worker."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO translation_jobs (document_id, status, attempts)
                    VALUES (%s, %s, 0)
                    RETURNING {_COLUMNS}
                    """,
                    (document_id, JobStatus.PENDING.value),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Failed to enqueue document {document_id}")
        return self._to_record(row)

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Lock the oldest claimable job and move it to processing in one statement.

        Rows locked by another worker are skipped (FOR UPDATE SKIP LOCKED), so
        concurrent workers never claim the same job.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                UPDATE translation_jobs
                SET status = %s, locked_at = NOW(), updated_at = NOW()
                WHERE id = (
                    SELECT id FROM translation_jobs
                    WHERE status = %s AND attempts < %s
                    ORDER BY created_at
                    LIMIT 1
                    FOR UPDATE SKIP LOCKED
                )
                RETURNING {_COLUMNS}
                """,
                (JobStatus.PROCESSING.value, JobStatus.PENDING.value, self._max_attempts),
            )
            row = cur.fetchone()
        conn.commit()
        return self._to_record(row) if row is not None else None

    def mark_done(self, job_id: int) -> None:
        self._update(job_id, "status = %s", (JobStatus.DONE.value,))

    def mark_failed(self, job_id: int, error: str) -> None:
        """Give up on a job; it is never claimed again."""
        self._update(
            job_id, "status = %s, error_message = %s", (JobStatus.FAILED.value, error)
        )

    def increment_attempts(self, job_id: int, error: str | None = None) -> None:
        """Count a failed attempt and hand the job back to the queue."""
        self._update(
            job_id,
            "attempts = attempts + 1, status = %s, error_message = %s, locked_at = NULL",
            (JobStatus.PENDING.value, error),
        )

    def find_by_id(self, job_id: int) -> JobRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM translation_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return self._to_record(row) if row is not None else None

    @staticmethod
    def _update(job_id: int, assignments: str, params: tuple[Any, ...]) -> None:
        with get_connection() as conn:
            conn.execute(
                f"UPDATE translation_jobs SET {assignments}, updated_at = NOW() WHERE id = %s",
                (*params, job_id),
            )
            conn.commit()

    @staticmethod
    def _to_record(row: dict[str, Any]) -> JobRecord:
        return JobRecord(
            id=row["id"],
            document_id=row["document_id"],
            status=JobStatus(row["status"]),
            attempts=row["attempts"],
            error_message=row.get("error_message"),
            locked_at=row.get("locked_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
