from pydantic_settings import BaseSettings, SettingsConfigDict

MEGABYTE = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "acadmix/pdfs"

    b2_account_id: str = ""
    b2_application_key: str = ""
    b2_bucket_id: str = ""
    b2_bucket_name: str = "acadmix-storage"
    b2_folder: str = "pdfs"
    b2_download_ttl_seconds: int = 7 * 24 * 60 * 60

    primary_limit_bytes: int = 10 * MEGABYTE
    allow_large_files: bool = False

    storage_timeout_seconds: int = 30
