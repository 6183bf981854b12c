import httpx

from pdf_ingest.config.settings import Settings
from pdf_ingest.config.storage import StorageConfig
from pdf_ingest.ingestion.exceptions import IngestionError
from pdf_ingest.ingestion.models import (
    DeletionResult,
    IngestionLimits,
    StorageResult,
    UploadCandidate,
)
from pdf_ingest.ingestion.pipeline import IngestionContext, IngestionStep
from pdf_ingest.ingestion.placeholder import is_placeholder_url, upload_failed_result
from pdf_ingest.ingestion.steps import (
    CompressStep,
    PrimaryUploadStep,
    SecondaryUploadStep,
    ValidateFormatStep,
    VerifyAccessStep,
)
from pdf_ingest.logging.logger import Log, format_mb
from pdf_ingest.pdf.compressor import PdfCompressor
from pdf_ingest.pdf.validator import PdfValidator
from pdf_ingest.storage.base import BaseObjectStore
from pdf_ingest.storage.factory import StoreFactory
from pdf_ingest.storage.http import build_http_client
from pdf_ingest.storage.verifier import AccessibilityVerifier


class IngestionOrchestrator:
    """Single entry point for storing and deleting uploaded PDFs.

    Pipeline: validate -> secondary store (oversized only) -> compress
    (oversized only) -> primary store -> accessibility check.

    Only InvalidFormatError and SizeExceededError reach the caller. Every
    other failure is logged and turned into a degraded placeholder result so
    that the surrounding transaction can still complete.
    """

    def __init__(
        self,
        steps: list[IngestionStep],
        stores: list[BaseObjectStore],
        limits: IngestionLimits | None = None,
    ) -> None:
        self._steps = steps
        self._stores = stores
        self._limits = limits if limits is not None else IngestionLimits()

    def ingest(
        self,
        candidate: UploadCandidate,
        limits: IngestionLimits | None = None,
    ) -> StorageResult:
        """Store a PDF and return where it lives.

        Raises:
            InvalidFormatError: if the buffer is not a PDF.
            SizeExceededError: if the PDF stays above the primary limit after
                compression and large files are not allowed.
        """
        context = IngestionContext(
            candidate=candidate,
            limits=limits if limits is not None else self._limits,
        )
        Log.info(
            f"Ingesting '{candidate.original_name}' ({format_mb(candidate.size)})"
        )

        try:
            for step in self._steps:
                context = step.run(context)
                if context.result is not None:
                    break
        except IngestionError:
            raise
        except Exception as exc:
            Log.exception(f"Ingestion of '{candidate.original_name}' failed: {exc}")
            return upload_failed_result(str(exc))

        if context.result is None:
            Log.error(f"Ingestion of '{candidate.original_name}' produced no result")
            return upload_failed_result()

        result = context.result
        if result.degraded:
            Log.warning(f"Returning placeholder for '{candidate.original_name}': {result.reason}")
        else:
            Log.info(
                f"Stored '{candidate.original_name}' via {result.provider.value} "
                f"({format_mb(context.original_size)} -> {format_mb(result.size_bytes)}): "
                f"{result.url}"
            )
        return result

    def delete(self, url: str) -> DeletionResult:
        """Best-effort removal of a stored document. Never raises."""
        if not url or is_placeholder_url(url):
            Log.info(f"Skipping delete for placeholder or empty URL {url!r}")
            return DeletionResult(url=url, provider=None, deleted=False, skipped=True)

        store = next((s for s in self._stores if s.owns_url(url)), None)
        if store is None:
            Log.warning(f"No configured store owns {url}, skipping delete")
            return DeletionResult(url=url, provider=None, deleted=False, skipped=True)

        try:
            store.delete(url)
        except Exception as exc:
            Log.error(f"{store.name} delete of {url} failed: {exc}")
            return DeletionResult(url=url, provider=store.name, deleted=False)
        return DeletionResult(url=url, provider=store.name, deleted=True)

    def check_connections(self) -> dict[str, bool]:
        """Authenticate against every configured store."""
        return {store.name: store.check_connection() for store in self._stores}


def build_orchestrator(
    settings: Settings,
    client: httpx.Client | None = None,
) -> IngestionOrchestrator:
    """Build an IngestionOrchestrator with all configured stores."""
    config = StorageConfig.from_settings(settings)
    http_client = client if client is not None else build_http_client(config.timeout_seconds)

    primary = StoreFactory.create_primary(config, http_client)
    secondary = StoreFactory.create_secondary(config, http_client)
    if primary is None:
        Log.warning("Cloudinary credentials missing, uploads will return placeholder URLs")
    if secondary is None:
        Log.info("B2 credentials missing, oversized files will be compressed instead")

    steps: list[IngestionStep] = [
        ValidateFormatStep(PdfValidator()),
        SecondaryUploadStep(secondary),
        CompressStep(PdfCompressor(), primary),
        PrimaryUploadStep(primary),
        VerifyAccessStep(AccessibilityVerifier(http_client), primary),
    ]
    stores = [s for s in (primary, secondary) if s is not None]
    return IngestionOrchestrator(
        steps=steps,
        stores=stores,
        limits=IngestionLimits.from_settings(settings),
    )
