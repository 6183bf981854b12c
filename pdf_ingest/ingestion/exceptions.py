from pdf_ingest.config.settings import MEGABYTE


class IngestionError(Exception):
    """Base exception for failures surfaced to the caller of the pipeline."""

    status_code: int = 500


class InvalidFormatError(IngestionError):
    """Raised when the uploaded bytes are not a PDF."""

    status_code = 400


class SizeExceededError(IngestionError):
    """Raised when a PDF stays above the primary limit after compression."""

    status_code = 400

    def __init__(self, final_size_bytes: int, limit_bytes: int) -> None:
        self.final_size_bytes = final_size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"PDF file is too large even after compression: {self.final_size_mb} MB "
            f"exceeds the {self.limit_mb} MB limit. Please compress the PDF further "
            "or split it into smaller files."
        )

    @property
    def final_size_mb(self) -> float:
        return round(self.final_size_bytes / MEGABYTE, 1)

    @property
    def limit_mb(self) -> float:
        return round(self.limit_bytes / MEGABYTE, 1)
