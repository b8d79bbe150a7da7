import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from doclens.config.settings import Settings
from doclens.documents.models import Document, DocumentPage, ProcessingStatus
from doclens.logging.logger import Log
from doclens.processor.exceptions import DataIntegrityError, InvalidDocumentError
from doclens.recognition.exceptions import RecognitionError
from doclens.recognition.factory import OcrBackendFactory
from doclens.recognition.stage import RecognitionStage
from doclens.translation.exceptions import TranslationError
from doclens.translation.factory import build_translation_stage
from doclens.translation.model_tracker import ModelAvailabilityTracker
from doclens.translation.stage import TranslationStage

SnapshotCallback = Callable[[Document], None]


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run: the final snapshot plus what stopped it, if anything."""

    document: Document
    error: Exception | None = None
    failed_page: int | None = None
    phase: ProcessingStatus | None = None

    @property
    def succeeded(self) -> bool:
        return self.document.status is ProcessingStatus.COMPLETED

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class _PageFailure(Exception):
    def __init__(self, snapshot: Document, error: Exception, page_number: int | None) -> None:
        super().__init__(str(error))
        self.snapshot = snapshot
        self.error = error
        self.page_number = page_number


class DocumentPipeline:
    """Drives a document through recognition of every page, then translation of every page.

    Each status change and each written page yields a new Document snapshot;
    the document passed in is never modified.
    """

    def __init__(
        self,
        recognition: RecognitionStage,
        translation: TranslationStage,
    ) -> None:
        self._recognition = recognition
        self._translation = translation

    async def process(
        self,
        document: Document,
        *,
        timeout: float | None = None,
        on_update: SnapshotCallback | None = None,
    ) -> PipelineResult:
        """Run both phases and return the completed or failed snapshot.

        Raises:
            InvalidStatusTransitionError: if the document is not pending.
            InvalidDocumentError: if the document has no pages or already carries text.
        """
        self._validate(document)
        Log.info(
            f"Processing document {document.id}: {document.page_count} pages, "
            f"{document.source_language.code} -> {document.target_language.code}"
        )

        latest = [self._advance(document, ProcessingStatus.RECOGNIZING, on_update)]

        def publish(snapshot: Document) -> Document:
            latest[0] = snapshot
            if on_update is not None:
                on_update(snapshot)
            return snapshot

        try:
            if timeout is None:
                completed = await self._run(latest[0], publish)
            else:
                completed = await asyncio.wait_for(self._run(latest[0], publish), timeout)
        except _PageFailure as failure:
            return self._fail(failure.snapshot, failure.error, failure.page_number, on_update)
        except asyncio.TimeoutError:
            error = TimeoutError(f"Document {document.id} did not finish within {timeout}s")
            return self._fail(latest[0], error, None, on_update)

        Log.info(f"Document {document.id} completed")
        return PipelineResult(document=completed)

    async def _run(self, snapshot: Document, publish: SnapshotCallback) -> Document:
        snapshot = await self._recognize_all(snapshot, publish)
        snapshot = publish(snapshot.with_status(ProcessingStatus.TRANSLATING))
        Log.info(f"Document {snapshot.id} status: {snapshot.status.display_text}")
        snapshot = await self._translate_all(snapshot, publish)
        return publish(snapshot.with_status(ProcessingStatus.COMPLETED))

    async def _recognize_all(self, snapshot: Document, publish: SnapshotCallback) -> Document:
        source = snapshot.source_language
        hint = None if source.is_auto else source
        for page in sorted(snapshot.pages, key=lambda p: p.page_number):
            try:
                result = await self._recognition.recognize(page.image_bytes, hint)
            except RecognitionError as exc:
                Log.error(
                    f"Recognition failed: {exc}", document=snapshot.id, page=page.page_number
                )
                raise _PageFailure(snapshot, exc, page.page_number) from exc
            snapshot = publish(
                self._replace_page(snapshot, page.with_recognized_text(result.text))
            )
            Log.debug("Page recognized", document=snapshot.id, page=page.page_number)
        return snapshot

    async def _translate_all(self, snapshot: Document, publish: SnapshotCallback) -> Document:
        skipped: list[int] = []
        for page in sorted(snapshot.pages, key=lambda p: p.page_number):
            if page.recognized_text is None:
                Log.error(
                    f"Data integrity violation: page {page.page_number} of document "
                    f"{snapshot.id} reached translation without recognized text, skipping"
                )
                skipped.append(page.page_number)
                continue
            try:
                translated = await self._translation.translate(
                    page.recognized_text,
                    snapshot.source_language,
                    snapshot.target_language,
                )
            except TranslationError as exc:
                Log.error(
                    f"Translation failed: {exc}", document=snapshot.id, page=page.page_number
                )
                raise _PageFailure(snapshot, exc, page.page_number) from exc
            snapshot = publish(
                self._replace_page(snapshot, page.with_translated_text(translated))
            )
            Log.debug("Page translated", document=snapshot.id, page=page.page_number)

        if skipped:
            error = DataIntegrityError(f"Pages without recognized text: {skipped}")
            raise _PageFailure(snapshot, error, skipped[0])
        return snapshot

    @staticmethod
    def _validate(document: Document) -> None:
        if document.status is not ProcessingStatus.PENDING:
            # Raises InvalidStatusTransitionError for anything but pending.
            document.with_status(ProcessingStatus.RECOGNIZING)
        if not document.pages:
            raise InvalidDocumentError(f"Document {document.id} has no pages")
        if any(page.has_text for page in document.pages):
            raise InvalidDocumentError(f"Document {document.id} already carries page text")

    @staticmethod
    def _advance(
        document: Document,
        status: ProcessingStatus,
        on_update: SnapshotCallback | None,
    ) -> Document:
        snapshot = document.with_status(status)
        Log.info(f"Document {document.id} status: {status.display_text}")
        if on_update is not None:
            on_update(snapshot)
        return snapshot

    @staticmethod
    def _replace_page(snapshot: Document, page: DocumentPage) -> Document:
        return snapshot.with_pages(
            page if existing.id == page.id else existing for existing in snapshot.pages
        )

    def _fail(
        self,
        snapshot: Document,
        error: Exception,
        page_number: int | None,
        on_update: SnapshotCallback | None,
    ) -> PipelineResult:
        phase = snapshot.status
        failed = self._advance(snapshot, ProcessingStatus.FAILED, on_update)
        Log.error(
            f"Document {snapshot.id} failed during {phase.value}"
            + (f" on page {page_number}" if page_number is not None else "")
            + f": {error}"
        )
        return PipelineResult(
            document=failed,
            error=error,
            failed_page=page_number,
            phase=phase,
        )


def build_pipeline(settings: Settings, tracker: ModelAvailabilityTracker) -> DocumentPipeline:
    """Build a DocumentPipeline with the configured OCR and translation backends."""
    recognition = RecognitionStage(OcrBackendFactory.create(settings))
    translation = build_translation_stage(settings, tracker)
    return DocumentPipeline(recognition=recognition, translation=translation)
