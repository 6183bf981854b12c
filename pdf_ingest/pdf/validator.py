from pdf_ingest.pdf.exceptions import InvalidPdfError

PDF_MAGIC = b"%PDF-"


def is_pdf(buffer: bytes) -> bool:
    """Return True when the first five bytes are the PDF magic header."""
    return buffer[: len(PDF_MAGIC)] == PDF_MAGIC


class PdfValidator:
    """Rejects non-PDF input by its magic bytes, before any other work."""

    def validate(self, buffer: bytes) -> None:
        """Check the header of a candidate buffer.

        Raises:
            InvalidPdfError: if the buffer does not start with ``%PDF-``.
        """
        if not is_pdf(buffer):
            found = buffer[: len(PDF_MAGIC)]
            raise InvalidPdfError(f"Invalid PDF file: missing PDF header (found {found!r})")
