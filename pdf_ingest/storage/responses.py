"""Response bodies of the provider APIs, trimmed to the fields we read."""

from pydantic import BaseModel, ConfigDict, Field


class ProviderResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class CloudinaryUpload(ProviderResponse):
    secure_url: str = Field(min_length=1)
    public_id: str = Field(min_length=1)


class CloudinaryDestroy(ProviderResponse):
    result: str


class B2Session(ProviderResponse):
    """Result of b2_authorize_account; valid for one ingestion call."""

    api_url: str = Field(alias="apiUrl", min_length=1)
    download_url: str = Field(alias="downloadUrl", min_length=1)
    authorization_token: str = Field(alias="authorizationToken", min_length=1)


class B2UploadTarget(ProviderResponse):
    upload_url: str = Field(alias="uploadUrl", min_length=1)
    authorization_token: str = Field(alias="authorizationToken", min_length=1)


class B2UploadedFile(ProviderResponse):
    file_id: str = Field(alias="fileId", default="")
    file_name: str = Field(alias="fileName", default="")


class B2DownloadGrant(ProviderResponse):
    authorization_token: str = Field(alias="authorizationToken", min_length=1)


class B2FileVersion(ProviderResponse):
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")


class B2FileListing(ProviderResponse):
    files: list[B2FileVersion] = Field(default_factory=list)
