import io

import pytest
from PIL import Image, ImageDraw
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def _pdf(*page_lines: str) -> bytes:
    """Build an A4 PDF with one line of text per page."""
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    for line in page_lines:
        pdf.drawString(72, 760, line)
        pdf.showPage()
    pdf.save()
    return buf.getvalue()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def sample_png_bytes() -> bytes:
    """A small RGBA PNG with a line of text drawn on it."""
    image = Image.new("RGBA", (200, 60), "white")
    ImageDraw.Draw(image).text((10, 20), "Hola mundo", fill="black")
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    return _pdf("Contrato de arrendamiento")


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    return _pdf("Primera pagina", "Segunda pagina")
