import psycopg
from psycopg.types.json import Jsonb

from doclens.config.user_settings import UserSettings
from doclens.database.connection import get_connection
from doclens.logging.logger import Log
from doclens.state.repository import StateRepository, parse_user_settings
from doclens.storage.exceptions import StorageError


class PostgresStateRepository(StateRepository):
    """Database operations for the app_settings and downloaded_models tables."""

    def load_user_settings(self) -> UserSettings:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT payload FROM app_settings WHERE id = 1")
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to load user settings: {exc}") from exc
        return parse_user_settings(row[0] if row is not None else None)

    def save_user_settings(self, settings: UserSettings) -> None:
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO app_settings (id, payload) VALUES (1, %s)
                    ON CONFLICT (id) DO UPDATE
                    SET payload = EXCLUDED.payload, updated_at = NOW()
                    """,
                    (Jsonb(settings.model_dump(mode="json")),),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to save user settings: {exc}") from exc
        Log.debug("User settings saved")

    def load_model_codes(self) -> set[str]:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT language_code FROM downloaded_models")
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to load model records: {exc}") from exc
        return {row[0] for row in rows}

    def save_model_codes(self, codes: frozenset[str]) -> None:
        try:
            with get_connection() as conn:
                with conn.transaction():
                    conn.execute(
                        "DELETE FROM downloaded_models WHERE NOT (language_code = ANY(%s))",
                        (sorted(codes),),
                    )
                    with conn.cursor() as cur:
                        cur.executemany(
                            """
                            INSERT INTO downloaded_models (language_code) VALUES (%s)
                            ON CONFLICT (language_code) DO NOTHING
                            """,
                            [(code,) for code in sorted(codes)],
                        )
        except psycopg.Error as exc:
            raise StorageError(f"Failed to save model records: {exc}") from exc
        Log.debug(f"Model records saved: {sorted(codes)}")
