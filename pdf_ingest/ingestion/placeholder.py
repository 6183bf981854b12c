"""Sentinel URLs returned when a document could not actually be stored.

They point at an external image service so that a record created with one
still renders something. New code should branch on
``StorageResult.degraded``; :func:`is_placeholder_url` exists for records
that only kept the URL.
"""

from urllib.parse import urlparse

from pdf_ingest.ingestion.models import Provider, StorageResult

PLACEHOLDER_HOST = "via.placeholder.com"
_PLACEHOLDER_BASE = f"https://{PLACEHOLDER_HOST}/400x600/EF4444/FFFFFF"

NOT_CONFIGURED_URL = f"{_PLACEHOLDER_BASE}?text=Provider+Not+Configured"
DOCUMENT_UNAVAILABLE_URL = f"{_PLACEHOLDER_BASE}?text=PDF+Document"

REASON_NOT_CONFIGURED = "provider not configured"
REASON_UPLOAD_FAILED = "document upload failed"


def is_placeholder_url(url: str) -> bool:
    return urlparse(url).hostname == PLACEHOLDER_HOST


def not_configured_result() -> StorageResult:
    return StorageResult(
        url=NOT_CONFIGURED_URL,
        provider=Provider.PLACEHOLDER,
        publicly_accessible=False,
        degraded=True,
        reason=REASON_NOT_CONFIGURED,
    )


def upload_failed_result(detail: str = "") -> StorageResult:
    reason = f"{REASON_UPLOAD_FAILED}: {detail}" if detail else REASON_UPLOAD_FAILED
    return StorageResult(
        url=DOCUMENT_UNAVAILABLE_URL,
        provider=Provider.PLACEHOLDER,
        publicly_accessible=False,
        degraded=True,
        reason=reason,
    )
