"""Best-effort PDF size reduction built on PyMuPDF.

Compression here is structural: metadata stripping, unused object removal,
stream deflation and object streams. It never re-renders pages, so an
already well-compressed document may not shrink at all; callers inspect the
returned size themselves.
"""

from dataclasses import dataclass
from enum import Enum

import pymupdf

from pdf_ingest.config.settings import MEGABYTE
from pdf_ingest.logging.logger import Log, format_mb
from pdf_ingest.pdf.exceptions import EncryptedPdfError, InvalidPdfError, PdfCompressionError
from pdf_ingest.pdf.validator import PdfValidator

LARGE_FILE_THRESHOLD_BYTES = 40 * MEGABYTE
DEFAULT_TARGET_BYTES = 10 * MEGABYTE


class QualityTier(str, Enum):
    """Compression aggressiveness, from least to most aggressive."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class WriteProfile:
    """PyMuPDF save options for one quality tier."""

    strip_metadata: bool
    garbage: int
    clean: bool
    deflate_images: bool
    deflate_fonts: bool


PROFILES: dict[QualityTier, WriteProfile] = {
    QualityTier.HIGH: WriteProfile(
        strip_metadata=False, garbage=0, clean=False, deflate_images=False, deflate_fonts=False
    ),
    QualityTier.MEDIUM: WriteProfile(
        strip_metadata=True, garbage=2, clean=False, deflate_images=False, deflate_fonts=False
    ),
    QualityTier.LOW: WriteProfile(
        strip_metadata=True, garbage=4, clean=True, deflate_images=True, deflate_fonts=True
    ),
}


@dataclass(frozen=True)
class CompressionRecommendation:
    """Size diagnostics for a buffer measured against a size ceiling."""

    needs_compression: bool
    current_size_bytes: int
    max_size_bytes: int
    suggested_tier: QualityTier

    @property
    def excess_size_bytes(self) -> int:
        return self.current_size_bytes - self.max_size_bytes

    @property
    def current_size_mb(self) -> float:
        return round(self.current_size_bytes / MEGABYTE, 1)

    @property
    def max_size_mb(self) -> float:
        return round(self.max_size_bytes / MEGABYTE, 1)

    @property
    def excess_size_mb(self) -> float:
        return round(self.excess_size_bytes / MEGABYTE, 1)


def needs_compression(buffer: bytes, max_size: int = DEFAULT_TARGET_BYTES) -> bool:
    return len(buffer) > max_size


def recommend(buffer: bytes, max_size: int = DEFAULT_TARGET_BYTES) -> CompressionRecommendation:
    """Suggest a quality tier from how far the buffer overshoots ``max_size``."""
    size = len(buffer)
    if size > max_size * 2:
        tier = QualityTier.LOW
    elif size > max_size * 1.5:
        tier = QualityTier.MEDIUM
    else:
        tier = QualityTier.HIGH
    return CompressionRecommendation(
        needs_compression=size > max_size,
        current_size_bytes=size,
        max_size_bytes=max_size,
        suggested_tier=tier,
    )


class PdfCompressor:
    """Shrinks PDF buffers using escalating quality tiers."""

    MAX_ATTEMPTS = 3

    def __init__(self, validator: PdfValidator | None = None) -> None:
        self._validator = validator if validator is not None else PdfValidator()

    def compress(
        self,
        buffer: bytes,
        target_size: int = DEFAULT_TARGET_BYTES,
        tier: QualityTier = QualityTier.MEDIUM,
        strip_metadata: bool = True,
    ) -> bytes:
        """Run one compression pass, escalating to LOW at most once.

        Malformed input (bad header, unparseable document) and encrypted
        documents are returned unchanged. Encryption is never removed.

        Raises:
            PdfCompressionError: if a parsed document cannot be serialized.
        """
        aggressive = len(buffer) > LARGE_FILE_THRESHOLD_BYTES
        if aggressive:
            Log.info(f"Input is {format_mb(len(buffer))}, using most aggressive write options")

        current = buffer
        while True:
            try:
                output = self._compress_once(current, tier, strip_metadata, aggressive)
            except InvalidPdfError as exc:
                Log.warning(f"Cannot compress PDF, returning input unchanged: {exc}")
                return current

            Log.info(
                f"Compressed ({tier.value}) {format_mb(len(current))} -> "
                f"{format_mb(len(output))}"
            )
            if len(output) > target_size and tier is not QualityTier.LOW:
                Log.info("Still above target, escalating to low quality tier")
                tier = QualityTier.LOW
                current = output
                continue
            return output

    def smart_compress(self, buffer: bytes, target_size: int = DEFAULT_TARGET_BYTES) -> bytes:
        """Compress toward ``target_size`` in at most MAX_ATTEMPTS passes.

        Attempt 1 uses MEDIUM, later attempts use LOW. Stops as soon as an
        attempt fails to shrink its input. Returns the smallest buffer
        achieved whether or not the target was met.
        """
        Log.info(
            f"Smart compression of {format_mb(len(buffer))} "
            f"toward {format_mb(target_size)}"
        )
        best = buffer
        attempts = 0
        while len(best) > target_size and attempts < self.MAX_ATTEMPTS:
            attempts += 1
            tier = QualityTier.MEDIUM if attempts == 1 else QualityTier.LOW
            Log.info(f"Compression attempt {attempts}/{self.MAX_ATTEMPTS} ({tier.value})")

            output = self.compress(best, target_size, tier=tier, strip_metadata=True)
            if len(output) >= len(best):
                Log.warning("Cannot compress further, keeping best result")
                break
            best = output

        ratio = (1 - len(best) / len(buffer)) * 100 if buffer else 0.0
        Log.info(
            f"Smart compression finished after {attempts} attempt(s): "
            f"{format_mb(len(buffer))} -> {format_mb(len(best))} ({ratio:.1f}%), "
            f"target met: {len(best) <= target_size}"
        )
        return best

    def _compress_once(
        self,
        buffer: bytes,
        tier: QualityTier,
        strip_metadata: bool,
        aggressive: bool,
    ) -> bytes:
        self._validator.validate(buffer)
        profile = PROFILES[QualityTier.LOW if aggressive else tier]

        try:
            doc = pymupdf.open(stream=buffer, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise InvalidPdfError(f"Failed to parse PDF: {exc}") from exc

        with doc:
            if doc.needs_pass:
                raise EncryptedPdfError("document is password protected")
            # owner-only encryption opens without a password; saving would drop it
            if (doc.metadata or {}).get("encryption"):
                raise EncryptedPdfError("document is encrypted, keeping its permissions")
            try:
                if strip_metadata and profile.strip_metadata:
                    self._strip_metadata(doc)
                return doc.tobytes(
                    garbage=profile.garbage,
                    clean=profile.clean,
                    deflate=True,
                    deflate_images=profile.deflate_images,
                    deflate_fonts=profile.deflate_fonts,
                    use_objstms=1,
                )
            except Exception as exc:
                raise PdfCompressionError(f"PDF compression failed: {exc}") from exc

    @staticmethod
    def _strip_metadata(doc: pymupdf.Document) -> None:
        now = pymupdf.get_pdf_now()
        doc.set_metadata(
            {
                "title": "",
                "author": "",
                "subject": "",
                "keywords": "",
                "producer": "",
                "creator": "",
                "creationDate": now,
                "modDate": now,
            }
        )
        doc.del_xml_metadata()
