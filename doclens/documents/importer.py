import io
from collections.abc import Iterable
from pathlib import Path

import pymupdf
from PIL import Image, UnidentifiedImageError

from doclens.config.user_settings import ImageQuality
from doclens.logging.logger import Log


class PageImportError(Exception):
    """Raised when a file cannot be turned into page images."""


class PageImporter:
    """Turns image files and PDFs into JPEG page images ready for a PageBatch."""

    PDF_SUFFIXES = frozenset({".pdf"})

    def __init__(self, image_quality: ImageQuality = ImageQuality.HIGH, render_dpi: int = 150) -> None:
        self._image_quality = image_quality
        self._render_dpi = render_dpi

    def load(self, paths: Iterable[Path]) -> list[bytes]:
        """Return one JPEG payload per page, in argument order then page order.

        Raises:
            PageImportError: if a file is missing, unreadable or not an image/PDF.
        """
        pages: list[bytes] = []
        for path in paths:
            path = Path(path)
            try:
                raw = path.read_bytes()
            except OSError as exc:
                raise PageImportError(f"Cannot read {path}: {exc}") from exc
            if path.suffix.lower() in self.PDF_SUFFIXES:
                loaded = self.render_pdf(raw)
            else:
                loaded = [self.encode_image(raw)]
            Log.info(f"Imported {len(loaded)} page(s) from {path.name}")
            pages.extend(loaded)
        return pages

    def encode_image(self, raw: bytes) -> bytes:
        """Decode any Pillow-readable image and re-encode it as JPEG."""
        try:
            with Image.open(io.BytesIO(raw)) as image:
                rgb = image.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise PageImportError(f"Unsupported or corrupt image: {exc}") from exc
        out = io.BytesIO()
        rgb.save(out, format="JPEG", quality=self._image_quality.jpeg_quality)
        return out.getvalue()

    def render_pdf(self, raw: bytes) -> list[bytes]:
        """Render each PDF page at the configured DPI."""
        zoom = self._render_dpi / 72
        try:
            with pymupdf.open(stream=raw, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                rendered = [
                    page.get_pixmap(matrix=pymupdf.Matrix(zoom, zoom)).tobytes("png")
                    for page in doc
                ]
        except Exception as exc:
            raise PageImportError(f"pymupdf rendering failed: {exc}") from exc
        if not rendered:
            raise PageImportError("PDF has no pages")
        return [self.encode_image(png) for png in rendered]
