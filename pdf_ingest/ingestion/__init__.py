from pdf_ingest.ingestion.exceptions import (
    IngestionError,
    InvalidFormatError,
    SizeExceededError,
)
from pdf_ingest.ingestion.models import (
    DeletionResult,
    IngestionLimits,
    Provider,
    StorageResult,
    UploadCandidate,
)
from pdf_ingest.ingestion.orchestrator import IngestionOrchestrator, build_orchestrator
from pdf_ingest.ingestion.placeholder import is_placeholder_url

__all__ = [
    "DeletionResult",
    "IngestionError",
    "IngestionLimits",
    "IngestionOrchestrator",
    "InvalidFormatError",
    "Provider",
    "SizeExceededError",
    "StorageResult",
    "UploadCandidate",
    "build_orchestrator",
    "is_placeholder_url",
]
