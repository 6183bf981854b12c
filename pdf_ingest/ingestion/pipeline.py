from abc import ABC, abstractmethod
from dataclasses import dataclass

from pdf_ingest.ingestion.models import IngestionLimits, StorageResult, UploadCandidate
from pdf_ingest.storage.models import StoredObject


@dataclass(slots=True)
class IngestionContext:
    candidate: UploadCandidate
    limits: IngestionLimits
    original_size: int = 0
    stored: StoredObject | None = None
    result: StorageResult | None = None

    def __post_init__(self) -> None:
        if not self.original_size:
            self.original_size = self.candidate.size


class IngestionStep(ABC):
    """One stage of the ingestion decision tree.

    A step that sets ``context.result`` ends the run; later steps are skipped.
    """

    @abstractmethod
    def run(self, context: IngestionContext) -> IngestionContext:
        raise NotImplementedError
