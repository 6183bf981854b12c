import re
import time
from collections.abc import Callable
from pathlib import PurePath
from urllib.parse import urlsplit, urlunsplit

from pdf_ingest.ingestion.exceptions import InvalidFormatError, SizeExceededError
from pdf_ingest.ingestion.models import Provider, StorageResult
from pdf_ingest.ingestion.pipeline import IngestionContext, IngestionStep
from pdf_ingest.ingestion.placeholder import not_configured_result
from pdf_ingest.logging.logger import Log, format_mb
from pdf_ingest.pdf.compressor import PdfCompressor
from pdf_ingest.pdf.exceptions import InvalidPdfError
from pdf_ingest.pdf.validator import PdfValidator
from pdf_ingest.storage.base import BaseObjectStore
from pdf_ingest.storage.verifier import AccessibilityVerifier

PDF_MIME_TYPE = "application/pdf"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def destination_name(original_name: str, timestamp_ms: int, keep_extension: bool = False) -> str:
    """Build ``<millis>_<basename>``; unique per upload, readable in consoles."""
    path = PurePath(original_name.replace("\\", "/"))
    stem = _UNSAFE_CHARS.sub("_", path.stem).strip("_") or "document"
    suffix = path.suffix.lower() if keep_extension and path.suffix else ""
    return f"{timestamp_ms}_{stem}{suffix}"


def canonical_url(url: str) -> str:
    """Drop query string and fragment added by the provider."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _now_ms(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


class ValidateFormatStep(IngestionStep):
    def __init__(self, validator: PdfValidator) -> None:
        self._validator = validator

    def run(self, context: IngestionContext) -> IngestionContext:
        candidate = context.candidate
        try:
            self._validator.validate(candidate.buffer)
        except InvalidPdfError as exc:
            raise InvalidFormatError(
                f"'{candidate.original_name}' is not a valid PDF file"
            ) from exc
        if candidate.mime_type != PDF_MIME_TYPE:
            Log.warning(
                f"'{candidate.original_name}' declared as {candidate.mime_type} "
                "but carries a PDF header"
            )
        return context


class SecondaryUploadStep(IngestionStep):
    """Send oversized files to the large-quota store before any compression."""

    def __init__(
        self,
        store: BaseObjectStore | None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    def run(self, context: IngestionContext) -> IngestionContext:
        candidate = context.candidate
        if candidate.size <= context.limits.primary_limit_bytes:
            return context
        if self._store is None:
            Log.info("Secondary store not configured, falling back to compression")
            return context

        Log.info(
            f"'{candidate.original_name}' is {format_mb(candidate.size)}, "
            f"above the {format_mb(context.limits.primary_limit_bytes)} primary limit; "
            "trying secondary store"
        )
        name = destination_name(candidate.original_name, _now_ms(self._clock), keep_extension=True)
        try:
            stored = self._store.upload(candidate.buffer, name, PDF_MIME_TYPE)
        except Exception as exc:
            Log.warning(f"Secondary store upload failed, falling back to compression: {exc}")
            return context

        context.stored = stored
        context.result = StorageResult(
            url=stored.url,
            provider=Provider.SECONDARY,
            publicly_accessible=stored.signed,
            size_bytes=stored.size_bytes,
        )
        return context


class CompressStep(IngestionStep):
    """Shrink oversized files toward the primary limit or refuse them."""

    def __init__(self, compressor: PdfCompressor, primary_store: BaseObjectStore | None) -> None:
        self._compressor = compressor
        self._primary_store = primary_store

    def run(self, context: IngestionContext) -> IngestionContext:
        candidate = context.candidate
        limit = context.limits.primary_limit_bytes
        if candidate.size <= limit:
            return context
        if self._primary_store is None:
            Log.warning("Primary store not configured, skipping compression")
            context.result = not_configured_result()
            return context

        compressed = self._compressor.smart_compress(candidate.buffer, limit)
        context.candidate = candidate.with_buffer(compressed)

        if len(compressed) > limit:
            if not context.limits.allow_large_files:
                raise SizeExceededError(len(compressed), limit)
            Log.warning(
                f"Large file override active, uploading {format_mb(len(compressed))} "
                f"(limit {format_mb(limit)})"
            )
        return context


class PrimaryUploadStep(IngestionStep):
    def __init__(
        self,
        store: BaseObjectStore | None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    def run(self, context: IngestionContext) -> IngestionContext:
        if self._store is None:
            Log.warning("Primary store not configured, returning placeholder URL")
            context.result = not_configured_result()
            return context

        candidate = context.candidate
        name = destination_name(candidate.original_name, _now_ms(self._clock))
        context.stored = self._store.upload(candidate.buffer, name, PDF_MIME_TYPE)
        return context


class VerifyAccessStep(IngestionStep):
    def __init__(self, verifier: AccessibilityVerifier, store: BaseObjectStore | None) -> None:
        self._verifier = verifier
        self._store = store

    def run(self, context: IngestionContext) -> IngestionContext:
        if context.stored is None or self._store is None:
            raise ValueError("IngestionContext.stored must be set before verification")
        url = canonical_url(context.stored.url)
        accessible = self._verifier.verify(url, self._store, context.stored.object_id)
        if not accessible:
            Log.warning(f"{url} could not be confirmed as publicly accessible")
        context.result = StorageResult(
            url=url,
            provider=Provider.PRIMARY,
            publicly_accessible=accessible,
            size_bytes=context.stored.size_bytes,
        )
        return context
