"""Command line interface for doclens.

Provides commands for translating page images, browsing stored documents,
managing translation models and user settings, and running the job worker.
"""

import asyncio
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from doclens.config.settings import Settings
from doclens.database.connection import apply_schema, close_pool, init_pool
from doclens.database.repositories.job_repository import JobRepository
from doclens.documents.batch import PageBatch
from doclens.documents.importer import PageImporter, PageImportError
from doclens.documents.models import Document, ProcessingStatus
from doclens.languages.catalog import get_language
from doclens.languages.exceptions import UnsupportedLanguageError
from doclens.logging.logger import Log
from doclens.main import build_worker, serve
from doclens.processor.pipeline import build_pipeline
from doclens.state.app_state import AppState
from doclens.storage.exceptions import DocumentNotFoundError, StorageError
from doclens.storage.factory import StorageFactory
from doclens.translation.exceptions import TranslationError
from doclens.translation.factory import build_tracker

app = typer.Typer(
    name="doclens",
    help="OCR and translation for photographed or scanned documents.",
    add_completion=False,
)
documents_app = typer.Typer(help="Browse and manage stored documents.")
models_app = typer.Typer(help="Manage offline translation models.")
settings_app = typer.Typer(help="Show and change user settings.")
db_app = typer.Typer(help="Database maintenance.")
app.add_typer(documents_app, name="documents")
app.add_typer(models_app, name="models")
app.add_typer(settings_app, name="settings")
app.add_typer(db_app, name="db")

console = Console()

STATUS_STYLES: dict[ProcessingStatus, str] = {
    ProcessingStatus.PENDING: "yellow",
    ProcessingStatus.RECOGNIZING: "cyan",
    ProcessingStatus.TRANSLATING: "cyan",
    ProcessingStatus.COMPLETED: "green",
    ProcessingStatus.FAILED: "red",
}


@contextmanager
def _runtime(needs_db: bool = False) -> Iterator[tuple[Settings, AppState]]:
    """Load settings and state for one command and flush state when it ends."""
    settings = Settings()
    Log.configure(settings.log_level, stream=sys.stderr)
    use_db = needs_db or settings.storage_backend.lower() == "postgres"
    if use_db:
        init_pool(settings)
    app_state: AppState | None = None
    try:
        app_state = AppState.load(StorageFactory.create_state_repository(settings))
        yield settings, app_state
    finally:
        if app_state is not None:
            app_state.flush()
        if use_db:
            close_pool()


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{escape(message)}[/red]")
    return typer.Exit(1)


def _status_text(status: ProcessingStatus) -> str:
    return f"[{STATUS_STYLES[status]}]{status.display_text}[/{STATUS_STYLES[status]}]"


def _documents_table(documents: list[Document]) -> Table:
    table = Table(title="Documents")
    table.add_column("ID", style="dim")
    table.add_column("Created")
    table.add_column("Languages")
    table.add_column("Pages", justify="right")
    table.add_column("Status")
    for document in documents:
        table.add_row(
            str(document.id),
            document.created_at.strftime("%Y-%m-%d %H:%M"),
            f"{document.source_language.display_name} -> {document.target_language.display_name}",
            str(document.page_count),
            _status_text(document.status),
        )
    return table


def _page_text(text: str | None) -> str:
    return escape(text) if text is not None else "[dim]none[/dim]"


def _print_document(document: Document) -> None:
    console.print(
        f"[bold]{document.id}[/bold]  {_status_text(document.status)}  "
        f"{document.source_language.display_name} -> {document.target_language.display_name}"
    )
    for page in document.pages:
        body = Table(show_header=False, box=None, padding=(0, 2))
        body.add_column("Field", style="cyan")
        body.add_column("Text")
        body.add_row("Original", _page_text(page.recognized_text))
        body.add_row("Translation", _page_text(page.translated_text))
        console.print(Panel(body, title=f"Page {page.page_number}", border_style="blue"))


@app.command()
def translate(
    files: list[Path] = typer.Argument(..., help="Image or PDF files, one document in order"),
    source: str | None = typer.Option(None, "--source", "-s", help="Source language code or 'auto'"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target language code"),
    timeout: float | None = typer.Option(None, "--timeout", help="Give up after this many seconds"),
    enqueue: bool = typer.Option(False, "--enqueue", help="Store as pending and queue for the worker"),
) -> None:
    """Recognize and translate the given pages as one document."""
    with _runtime(needs_db=enqueue) as (settings, app_state):
        user_settings = app_state.user_settings
        try:
            source_language = get_language(source) if source else user_settings.source()
            target_language = get_language(target) if target else user_settings.target()
        except UnsupportedLanguageError as exc:
            raise _fail(str(exc)) from None
        if target_language.is_auto:
            raise _fail("Target language cannot be auto-detect")

        importer = PageImporter(user_settings.image_quality, settings.render_dpi)
        try:
            images = importer.load(files)
        except PageImportError as exc:
            raise _fail(str(exc)) from None

        batch = PageBatch()
        for image in images:
            batch.add_image(image)
        document = batch.to_document(source_language, target_language)
        store = StorageFactory.create_document_store(settings)

        if enqueue:
            if settings.storage_backend.lower() != "postgres":
                raise _fail("--enqueue requires STORAGE_BACKEND=postgres")
            try:
                store.save(document)
                job = JobRepository(settings.max_job_attempts).enqueue(document.id)
            except (StorageError, psycopg.Error) as exc:
                raise _fail(f"Could not queue document: {exc}") from None
            console.print(f"[green]Queued document {document.id} as job {job.id}[/green]")
            return

        tracker = build_tracker(settings, app_state.model_records)
        pipeline = build_pipeline(settings, tracker)
        effective_timeout = timeout if timeout is not None else settings.pipeline_timeout_seconds

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Pending", total=document.page_count * 2)

            def on_update(snapshot: Document) -> None:
                done = sum(
                    (page.recognized_text is not None) + (page.translated_text is not None)
                    for page in snapshot.pages
                )
                progress.update(task, description=snapshot.status.display_text, completed=done)

            result = asyncio.run(
                pipeline.process(document, timeout=effective_timeout, on_update=on_update)
            )

        final = result.document
        if not user_settings.keep_original_images:
            final = final.without_images()
        if user_settings.keep_translation_history:
            try:
                store.save(final)
            except StorageError as exc:
                console.print(f"[red]Could not save document: {escape(str(exc))}[/red]")

        _print_document(final)
        if not result.succeeded:
            where = f" on page {result.failed_page}" if result.failed_page else ""
            raise _fail(f"Processing failed{where}: {result.error}")


@documents_app.command("list")
def documents_list() -> None:
    """List stored documents, newest first."""
    with _runtime() as (settings, _):
        documents = StorageFactory.create_document_store(settings).fetch_all()
    if not documents:
        console.print("[yellow]No documents stored[/yellow]")
        return
    console.print(_documents_table(documents))


@documents_app.command("show")
def documents_show(document_id: uuid.UUID = typer.Argument(..., help="Document ID")) -> None:
    """Show the original and translated text of every page."""
    with _runtime() as (settings, _):
        try:
            document = StorageFactory.create_document_store(settings).find_by_id(document_id)
        except DocumentNotFoundError as exc:
            raise _fail(str(exc)) from None
    _print_document(document)


@documents_app.command("search")
def documents_search(query: str = typer.Argument(..., help="Text to look for")) -> None:
    """Find documents by page text or language name."""
    with _runtime() as (settings, _):
        documents = StorageFactory.create_document_store(settings).search(query)
    if not documents:
        console.print(f"[yellow]No documents match '{escape(query)}'[/yellow]")
        return
    console.print(_documents_table(documents))


@documents_app.command("delete")
def documents_delete(document_id: uuid.UUID = typer.Argument(..., help="Document ID")) -> None:
    """Delete one document."""
    with _runtime() as (settings, _):
        StorageFactory.create_document_store(settings).delete(document_id)
    console.print(f"[green]Deleted {document_id}[/green]")


@documents_app.command("clear")
def documents_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every stored document."""
    if not yes and not typer.confirm("Delete all documents?"):
        raise typer.Abort()
    with _runtime() as (settings, _):
        StorageFactory.create_document_store(settings).clear_all()
    console.print("[green]All documents deleted[/green]")


@models_app.command("list")
def models_list() -> None:
    """Show which translation models are available locally."""
    with _runtime() as (settings, app_state):
        tracker = build_tracker(settings, app_state.model_records)
        try:
            languages = asyncio.run(tracker.languages())
        except TranslationError as exc:
            raise _fail(str(exc)) from None
    table = Table(title="Translation models")
    table.add_column("Code", style="cyan")
    table.add_column("Language")
    table.add_column("Downloaded")
    for language in languages:
        if language.is_auto:
            continue
        table.add_row(
            language.code,
            language.display_name,
            "[green]yes[/green]" if language.is_downloaded else "[dim]no[/dim]",
        )
    console.print(table)


@models_app.command("download")
def models_download(code: str = typer.Argument(..., help="Language code")) -> None:
    """Download the translation model for a language."""
    with _runtime() as (settings, app_state):
        try:
            language = get_language(code)
        except UnsupportedLanguageError as exc:
            raise _fail(str(exc)) from None
        tracker = build_tracker(settings, app_state.model_records)
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Downloading {language.display_name}", total=1.0)
            try:
                asyncio.run(
                    tracker.download(
                        language,
                        on_progress=lambda value: progress.update(task, completed=value),
                    )
                )
            except TranslationError as exc:
                raise _fail(str(exc)) from None
            progress.update(task, completed=1.0)
    console.print(f"[green]{language.display_name} model is ready[/green]")


@models_app.command("delete")
def models_delete(code: str = typer.Argument(..., help="Language code")) -> None:
    """Delete a downloaded translation model."""
    with _runtime() as (settings, app_state):
        try:
            language = get_language(code)
            tracker = build_tracker(settings, app_state.model_records)
            asyncio.run(tracker.delete(language))
        except TranslationError as exc:
            raise _fail(str(exc)) from None
    console.print(f"[green]{language.display_name} model removed[/green]")


@settings_app.command("show")
def settings_show() -> None:
    """Print the current user settings."""
    with _runtime() as (_, app_state):
        user_settings = app_state.user_settings
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Source language", user_settings.source().display_name)
    table.add_row("Target language", user_settings.target().display_name)
    table.add_row("Auto-detect language", str(user_settings.auto_detect_language))
    table.add_row("Auto capture", str(user_settings.auto_capture))
    table.add_row("Flash on by default", str(user_settings.flash_default_on))
    table.add_row("Image quality", user_settings.image_quality.value)
    table.add_row("Keep translation history", str(user_settings.keep_translation_history))
    table.add_row("Keep original images", str(user_settings.keep_original_images))
    console.print(Panel(table, title="[bold blue]doclens settings[/bold blue]", border_style="blue"))


@settings_app.command("languages")
def settings_languages(
    source: str = typer.Argument(..., help="Source language code or 'auto'"),
    target: str = typer.Argument(..., help="Target language code"),
) -> None:
    """Set the default language pair."""
    with _runtime() as (_, app_state):
        try:
            source_language = get_language(source)
            target_language = get_language(target)
        except UnsupportedLanguageError as exc:
            raise _fail(str(exc)) from None
        if target_language.is_auto:
            raise _fail("Target language cannot be auto-detect")
        app_state.update_user_settings(
            app_state.user_settings.with_languages(source_language, target_language)
        )
    console.print(
        f"[green]Languages set: {source_language.display_name} -> "
        f"{target_language.display_name}[/green]"
    )


@settings_app.command("swap")
def settings_swap() -> None:
    """Swap source and target languages."""
    with _runtime() as (_, app_state):
        current = app_state.user_settings
        if current.source().is_auto:
            console.print("[yellow]Source is auto-detect, nothing to swap[/yellow]")
            return
        app_state.update_user_settings(current.swap_languages())
        swapped = app_state.user_settings
    console.print(
        f"[green]Languages set: {swapped.source().display_name} -> "
        f"{swapped.target().display_name}[/green]"
    )


@settings_app.command("auto-detect")
def settings_auto_detect(
    enabled: bool = typer.Argument(..., help="true to detect the source language automatically"),
) -> None:
    """Turn source-language auto-detection on or off."""
    with _runtime() as (_, app_state):
        app_state.update_user_settings(app_state.user_settings.with_auto_detect(enabled))
    console.print(f"[green]Auto-detect {'enabled' if enabled else 'disabled'}[/green]")


@db_app.command("init")
def db_init() -> None:
    """Create the database tables."""
    settings = Settings()
    Log.configure(settings.log_level, stream=sys.stderr)
    init_pool(settings)
    try:
        apply_schema()
    finally:
        close_pool()
    console.print("[green]Database schema is up to date[/green]")


@app.command()
def worker(
    max_jobs: int | None = typer.Option(None, "--max-jobs", help="Stop after this many jobs"),
) -> None:
    """Process queued documents until interrupted."""
    with _runtime(needs_db=True) as (settings, app_state):
        asyncio.run(serve(build_worker(settings, app_state), max_jobs=max_jobs))


if __name__ == "__main__":
    app()
