from dataclasses import dataclass, replace
from enum import Enum

from pdf_ingest.config.settings import MEGABYTE, Settings


class Provider(str, Enum):
    """Which store served a StorageResult."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class UploadCandidate:
    """An uploaded file as handed over by the upload handler."""

    buffer: bytes
    original_name: str
    mime_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.buffer)

    def with_buffer(self, buffer: bytes) -> "UploadCandidate":
        """Return a copy carrying a replacement buffer (e.g. after compression)."""
        return replace(self, buffer=buffer)


@dataclass(frozen=True)
class IngestionLimits:
    """Size routing knobs for one ingestion call."""

    primary_limit_bytes: int = 10 * MEGABYTE
    allow_large_files: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionLimits":
        return cls(
            primary_limit_bytes=settings.primary_limit_bytes,
            allow_large_files=settings.allow_large_files,
        )


@dataclass(frozen=True)
class StorageResult:
    """Outcome of an ingestion.

    ``degraded`` is True when ``url`` is a placeholder sentinel rather than
    stored content; ``reason`` then says why.
    """

    url: str
    provider: Provider
    publicly_accessible: bool
    degraded: bool = False
    reason: str = ""
    size_bytes: int = 0


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of a best-effort delete. Always success-shaped."""

    url: str
    provider: str | None
    deleted: bool
    skipped: bool = False

    @property
    def success(self) -> bool:
        return True
