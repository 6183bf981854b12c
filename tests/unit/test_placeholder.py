from pdf_ingest.ingestion.exceptions import SizeExceededError
from pdf_ingest.ingestion.models import Provider
from pdf_ingest.ingestion.placeholder import (
    DOCUMENT_UNAVAILABLE_URL,
    NOT_CONFIGURED_URL,
    is_placeholder_url,
    not_configured_result,
    upload_failed_result,
)


class TestPlaceholders:
    def test_recognizes_both_sentinels(self) -> None:
        assert is_placeholder_url(NOT_CONFIGURED_URL)
        assert is_placeholder_url(DOCUMENT_UNAVAILABLE_URL)

    def test_real_urls_are_not_placeholders(self) -> None:
        assert not is_placeholder_url("https://res.cloudinary.com/demo/raw/upload/a.pdf")

    def test_not_configured_result_is_degraded(self) -> None:
        result = not_configured_result()
        assert result.degraded is True
        assert result.provider is Provider.PLACEHOLDER
        assert result.publicly_accessible is False
        assert result.reason == "provider not configured"

    def test_upload_failed_result_carries_detail(self) -> None:
        result = upload_failed_result("timeout")
        assert result.url == DOCUMENT_UNAVAILABLE_URL
        assert result.reason == "document upload failed: timeout"


class TestSizeExceededError:
    def test_rounds_sizes_to_one_decimal(self) -> None:
        exc = SizeExceededError(final_size_bytes=12_345_678, limit_bytes=10 * 1024 * 1024)
        assert exc.final_size_mb == 11.8
        assert exc.limit_mb == 10.0
        assert "11.8 MB" in str(exc)
        assert exc.status_code == 400
