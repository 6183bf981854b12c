import httpx

from pdf_ingest.config.storage import StorageConfig
from pdf_ingest.storage.b2_store import B2Store
from pdf_ingest.storage.cloudinary_store import CloudinaryStore


class StoreFactory:
    """Creates the configured object stores; unconfigured providers are None."""

    @classmethod
    def create_primary(
        cls, config: StorageConfig, client: httpx.Client
    ) -> CloudinaryStore | None:
        if config.primary is None:
            return None
        return CloudinaryStore(config.primary, client)

    @classmethod
    def create_secondary(
        cls, config: StorageConfig, client: httpx.Client
    ) -> B2Store | None:
        if config.secondary is None:
            return None
        return B2Store(config.secondary, client)
