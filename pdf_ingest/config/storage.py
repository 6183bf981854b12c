from dataclasses import dataclass

from pdf_ingest.config.settings import Settings

# Values shipped in sample .env files; treated the same as a missing credential.
_PLACEHOLDER_VALUES = frozenset({"your-cloud-name", "your-api-key", "your-api-secret"})


@dataclass(frozen=True)
class CloudinaryCredentials:
    """Primary store credentials."""

    cloud_name: str
    api_key: str
    api_secret: str
    folder: str


@dataclass(frozen=True)
class B2Credentials:
    """Secondary store credentials."""

    account_id: str
    application_key: str
    bucket_id: str
    bucket_name: str
    folder: str
    download_ttl_seconds: int


@dataclass(frozen=True)
class StorageConfig:
    """Provider configuration built once at process start.

    A provider whose required credentials are missing is left as None; the
    ingestion pipeline treats it as "not configured".
    """

    primary: CloudinaryCredentials | None
    secondary: B2Credentials | None
    timeout_seconds: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        return cls(
            primary=_build_primary(settings),
            secondary=_build_secondary(settings),
            timeout_seconds=settings.storage_timeout_seconds,
        )


def _present(*values: str) -> bool:
    return all(v.strip() and v.strip() not in _PLACEHOLDER_VALUES for v in values)


def _build_primary(settings: Settings) -> CloudinaryCredentials | None:
    if not _present(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
    ):
        return None
    return CloudinaryCredentials(
        cloud_name=settings.cloudinary_cloud_name.strip(),
        api_key=settings.cloudinary_api_key.strip(),
        api_secret=settings.cloudinary_api_secret.strip(),
        folder=settings.cloudinary_folder.strip("/"),
    )


def _build_secondary(settings: Settings) -> B2Credentials | None:
    if not _present(
        settings.b2_account_id,
        settings.b2_application_key,
        settings.b2_bucket_id,
        settings.b2_bucket_name,
    ):
        return None
    return B2Credentials(
        account_id=settings.b2_account_id.strip(),
        application_key=settings.b2_application_key.strip(),
        bucket_id=settings.b2_bucket_id.strip(),
        bucket_name=settings.b2_bucket_name.strip(),
        folder=settings.b2_folder.strip("/"),
        download_ttl_seconds=settings.b2_download_ttl_seconds,
    )
