import io

import pymupdf
import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def uncompressed_pdf_bytes() -> bytes:
    """Generate a multi-page PDF with uncompressed content streams and metadata."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter, pageCompression=0)
    c.setTitle("Lecture Notes")
    c.setAuthor("Course Staff")
    c.setSubject("Thermodynamics")
    for page in range(20):
        for line in range(50):
            c.drawString(
                72,
                750 - line * 13,
                f"Page {page + 1} line {line + 1}: entropy of an isolated system never decreases",
            )
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    """PNG magic header followed by filler."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture()
def owner_locked_pdf_bytes(uncompressed_pdf_bytes: bytes) -> bytes:
    """AES-256 PDF that opens without a password but restricts print and copy."""
    with pymupdf.open(stream=uncompressed_pdf_bytes, filetype="pdf") as doc:
        return doc.tobytes(
            encryption=pymupdf.PDF_ENCRYPT_AES_256,
            owner_pw="owner-secret",
            user_pw="",
            permissions=pymupdf.PDF_PERM_ACCESSIBILITY,
        )
