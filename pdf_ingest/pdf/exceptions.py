class PdfError(Exception):
    """Base exception for all PDF handling errors."""


class InvalidPdfError(PdfError):
    """Raised when a buffer does not carry a PDF header or cannot be parsed."""


class PdfCompressionError(PdfError):
    """Raised when a parsed document cannot be serialized back to bytes."""


class EncryptedPdfError(InvalidPdfError):
    """Raised when a document is encrypted and must not be re-written."""
