from unittest.mock import MagicMock, patch

import pymupdf
import pytest

from pdf_ingest.config.settings import MEGABYTE
from pdf_ingest.pdf.compressor import (
    LARGE_FILE_THRESHOLD_BYTES,
    PdfCompressor,
    QualityTier,
    needs_compression,
    recommend,
)
from pdf_ingest.pdf.exceptions import PdfCompressionError


def _fake_pdf(size: int) -> bytes:
    return b"%PDF-" + b"0" * (size - 5)


def _metadata(pdf: bytes) -> dict[str, str]:
    with pymupdf.open(stream=pdf, filetype="pdf") as doc:
        return dict(doc.metadata or {})


class TestCompress:
    def test_shrinks_uncompressed_pdf(self, uncompressed_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(uncompressed_pdf_bytes, target_size=10 * MEGABYTE)
        assert len(result) < len(uncompressed_pdf_bytes)
        assert result.startswith(b"%PDF-")

    def test_output_keeps_all_pages(self, uncompressed_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(
            uncompressed_pdf_bytes, target_size=1, tier=QualityTier.LOW
        )
        with pymupdf.open(stream=result, filetype="pdf") as doc:
            assert doc.page_count == 20

    def test_medium_strips_metadata(self, uncompressed_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(
            uncompressed_pdf_bytes, target_size=10 * MEGABYTE, tier=QualityTier.MEDIUM
        )
        metadata = _metadata(result)
        assert metadata.get("title", "") == ""
        assert metadata.get("author", "") == ""
        assert metadata.get("subject", "") == ""

    def test_high_keeps_metadata(self, uncompressed_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(
            uncompressed_pdf_bytes, target_size=10 * MEGABYTE, tier=QualityTier.HIGH
        )
        assert _metadata(result)["title"] == "Lecture Notes"

    def test_strip_metadata_can_be_disabled(self, uncompressed_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(
            uncompressed_pdf_bytes,
            target_size=10 * MEGABYTE,
            tier=QualityTier.MEDIUM,
            strip_metadata=False,
        )
        assert _metadata(result)["author"] == "Course Staff"

    def test_returns_non_pdf_unchanged(self, png_bytes: bytes) -> None:
        assert PdfCompressor().compress(png_bytes) is png_bytes

    def test_returns_original_when_parse_fails(self) -> None:
        buffer = _fake_pdf(100)
        with patch(
            "pdf_ingest.pdf.compressor.pymupdf.open",
            side_effect=RuntimeError("cannot open broken document"),
        ):
            assert PdfCompressor().compress(buffer) is buffer

    def test_returns_original_for_password_protected_pdf(self) -> None:
        buffer = _fake_pdf(100)
        doc = MagicMock(needs_pass=True)
        with patch("pdf_ingest.pdf.compressor.pymupdf.open", return_value=doc):
            assert PdfCompressor().compress(buffer) is buffer
        doc.tobytes.assert_not_called()

    def test_keeps_owner_encryption_and_permissions(self, owner_locked_pdf_bytes: bytes) -> None:
        result = PdfCompressor().compress(
            owner_locked_pdf_bytes, target_size=1, tier=QualityTier.MEDIUM
        )

        assert result is owner_locked_pdf_bytes
        with pymupdf.open(stream=result, filetype="pdf") as doc:
            assert doc.metadata["encryption"]
            assert doc.permissions & pymupdf.PDF_PERM_PRINT == 0
            assert doc.permissions & pymupdf.PDF_PERM_COPY == 0

    def test_smart_compress_leaves_encrypted_pdf_alone(self, owner_locked_pdf_bytes: bytes) -> None:
        result = PdfCompressor().smart_compress(owner_locked_pdf_bytes, target_size=1)
        assert result is owner_locked_pdf_bytes

    def test_raises_when_serialization_fails(self) -> None:
        doc = MagicMock(needs_pass=False, metadata={})
        doc.tobytes.side_effect = RuntimeError("xref damaged")
        with patch("pdf_ingest.pdf.compressor.pymupdf.open", return_value=doc):
            with pytest.raises(PdfCompressionError, match="xref damaged"):
                PdfCompressor().compress(_fake_pdf(100))


class TestCompressEscalation:
    def test_escalates_once_to_low_when_still_too_large(self) -> None:
        compressor = PdfCompressor()
        with patch.object(
            compressor, "_compress_once", side_effect=[_fake_pdf(90), _fake_pdf(80)]
        ) as once:
            result = compressor.compress(_fake_pdf(100), target_size=50, tier=QualityTier.MEDIUM)

        assert len(result) == 80
        tiers = [c.args[1] for c in once.call_args_list]
        assert tiers == [QualityTier.MEDIUM, QualityTier.LOW]
        # second pass works on the already-compressed buffer
        assert len(once.call_args_list[1].args[0]) == 90

    def test_no_escalation_when_target_met(self) -> None:
        compressor = PdfCompressor()
        with patch.object(compressor, "_compress_once", return_value=_fake_pdf(40)) as once:
            compressor.compress(_fake_pdf(100), target_size=50, tier=QualityTier.HIGH)
        assert once.call_count == 1

    def test_no_escalation_from_low(self) -> None:
        compressor = PdfCompressor()
        with patch.object(compressor, "_compress_once", return_value=_fake_pdf(90)) as once:
            result = compressor.compress(_fake_pdf(100), target_size=50, tier=QualityTier.LOW)
        assert once.call_count == 1
        assert len(result) == 90

    def test_large_input_uses_aggressive_options(self) -> None:
        compressor = PdfCompressor()
        big = _fake_pdf(LARGE_FILE_THRESHOLD_BYTES + 1)
        with patch.object(compressor, "_compress_once", return_value=_fake_pdf(100)) as once:
            compressor.compress(big, target_size=10 * MEGABYTE, tier=QualityTier.HIGH)
        assert once.call_args.args[3] is True


class TestSmartCompress:
    def test_returns_input_when_already_under_target(self) -> None:
        compressor = PdfCompressor()
        buffer = _fake_pdf(40)
        with patch.object(compressor, "compress") as compress:
            assert compressor.smart_compress(buffer, target_size=50) is buffer
        compress.assert_not_called()

    def test_caps_attempts_at_three(self) -> None:
        compressor = PdfCompressor()
        outputs = [_fake_pdf(90), _fake_pdf(80), _fake_pdf(70), _fake_pdf(60)]
        with patch.object(compressor, "compress", side_effect=outputs) as compress:
            result = compressor.smart_compress(_fake_pdf(100), target_size=10)

        assert compress.call_count == PdfCompressor.MAX_ATTEMPTS == 3
        assert len(result) == 70

    def test_tier_sequence_is_medium_then_low(self) -> None:
        compressor = PdfCompressor()
        outputs = [_fake_pdf(90), _fake_pdf(80), _fake_pdf(70)]
        with patch.object(compressor, "compress", side_effect=outputs) as compress:
            compressor.smart_compress(_fake_pdf(100), target_size=10)

        tiers = [c.kwargs["tier"] for c in compress.call_args_list]
        assert tiers == [QualityTier.MEDIUM, QualityTier.LOW, QualityTier.LOW]

    def test_stops_when_attempt_does_not_shrink(self) -> None:
        compressor = PdfCompressor()
        buffer = _fake_pdf(100)
        with patch.object(compressor, "compress", return_value=_fake_pdf(100)) as compress:
            result = compressor.smart_compress(buffer, target_size=10)

        assert compress.call_count == 1
        assert result is buffer

    def test_keeps_best_result_when_attempt_grows(self) -> None:
        compressor = PdfCompressor()
        outputs = [_fake_pdf(90), _fake_pdf(95)]
        with patch.object(compressor, "compress", side_effect=outputs) as compress:
            result = compressor.smart_compress(_fake_pdf(100), target_size=10)

        assert compress.call_count == 2
        assert len(result) == 90

    def test_stops_once_target_met(self) -> None:
        compressor = PdfCompressor()
        outputs = [_fake_pdf(90), _fake_pdf(40)]
        with patch.object(compressor, "compress", side_effect=outputs) as compress:
            result = compressor.smart_compress(_fake_pdf(100), target_size=50)

        assert compress.call_count == 2
        assert len(result) == 40

    def test_each_attempt_is_no_larger_than_the_previous(self) -> None:
        compressor = PdfCompressor()
        seen: list[int] = []

        def fake_compress(buffer: bytes, target_size: int, **_: object) -> bytes:
            seen.append(len(buffer))
            return _fake_pdf(len(buffer) - 7)

        with patch.object(compressor, "compress", side_effect=fake_compress):
            compressor.smart_compress(_fake_pdf(100), target_size=10)

        assert seen == sorted(seen, reverse=True)

    def test_real_pdf_reaches_target(self, uncompressed_pdf_bytes: bytes) -> None:
        target = len(uncompressed_pdf_bytes) // 2
        result = PdfCompressor().smart_compress(uncompressed_pdf_bytes, target_size=target)
        assert len(result) <= target
        assert result.startswith(b"%PDF-")


class TestRecommendations:
    def test_needs_compression(self) -> None:
        assert needs_compression(_fake_pdf(101), max_size=100)
        assert not needs_compression(_fake_pdf(100), max_size=100)

    def test_suggests_low_above_twice_the_limit(self) -> None:
        rec = recommend(_fake_pdf(25 * MEGABYTE), max_size=10 * MEGABYTE)
        assert rec.needs_compression
        assert rec.suggested_tier is QualityTier.LOW
        assert rec.current_size_mb == 25.0
        assert rec.excess_size_mb == 15.0

    def test_suggests_medium_above_one_and_a_half(self) -> None:
        rec = recommend(_fake_pdf(160), max_size=100)
        assert rec.suggested_tier is QualityTier.MEDIUM

    def test_suggests_high_when_close(self) -> None:
        rec = recommend(_fake_pdf(120), max_size=100)
        assert rec.suggested_tier is QualityTier.HIGH
        assert rec.excess_size_bytes == 20
