import hashlib
from typing import ClassVar
from urllib.parse import quote, unquote, urlparse

import httpx

from pdf_ingest.config.storage import B2Credentials
from pdf_ingest.logging.logger import Log, format_mb
from pdf_ingest.storage.base import BaseObjectStore
from pdf_ingest.storage.exceptions import StorageError
from pdf_ingest.storage.http import send, send_model
from pdf_ingest.storage.models import StoredObject
from pdf_ingest.storage.responses import (
    B2DownloadGrant,
    B2FileListing,
    B2Session,
    B2UploadedFile,
    B2UploadTarget,
)


class B2Store(BaseObjectStore):
    """Secondary store: Backblaze B2 native API over a private bucket.

    Objects are not publicly readable; uploads return a download URL carrying
    a time-limited ``Authorization`` query parameter.
    """

    name: ClassVar[str] = "b2"

    AUTHORIZE_URL: ClassVar[str] = (
        "https://api.backblazeb2.com/b2api/v2/b2_authorize_account"
    )
    DOMAIN: ClassVar[str] = "backblazeb2.com"
    # b2_get_download_authorization rejects anything longer than one week.
    MAX_DOWNLOAD_TTL_SECONDS: ClassVar[int] = 7 * 24 * 60 * 60

    def __init__(self, credentials: B2Credentials, client: httpx.Client) -> None:
        self._credentials = credentials
        self._client = client

    def authorize(self) -> B2Session:
        return send_model(
            self._client,
            "GET",
            self.AUTHORIZE_URL,
            B2Session,
            provider=self.name,
            auth=(self._credentials.account_id, self._credentials.application_key),
        )

    def upload(self, buffer: bytes, file_name: str, content_type: str) -> StoredObject:
        folder = self._credentials.folder
        full_name = f"{folder}/{file_name}" if folder else file_name
        Log.info(f"Uploading {format_mb(len(buffer))} to B2 as {full_name}")

        session = self.authorize()
        target = send_model(
            self._client,
            "POST",
            self._api(session, "b2_get_upload_url"),
            B2UploadTarget,
            provider=self.name,
            headers={"Authorization": session.authorization_token},
            json={"bucketId": self._credentials.bucket_id},
        )
        uploaded = send_model(
            self._client,
            "POST",
            target.upload_url,
            B2UploadedFile,
            provider=self.name,
            headers={
                "Authorization": target.authorization_token,
                "X-Bz-File-Name": quote(full_name, safe="/"),
                "Content-Type": content_type,
                "X-Bz-Content-Sha1": hashlib.sha1(buffer).hexdigest(),
            },
            content=buffer,
        )

        url, signed = self._download_url(session, full_name)
        Log.info(f"B2 upload complete: {full_name} (signed={signed})")
        return StoredObject(
            url=url,
            object_id=uploaded.file_id,
            size_bytes=len(buffer),
            signed=signed,
        )

    def delete(self, url: str) -> None:
        file_name = self.object_id_from_url(url)
        session = self.authorize()
        listing = send_model(
            self._client,
            "POST",
            self._api(session, "b2_list_file_versions"),
            B2FileListing,
            provider=self.name,
            headers={"Authorization": session.authorization_token},
            json={
                "bucketId": self._credentials.bucket_id,
                "startFileName": file_name,
                "prefix": file_name,
                "maxFileCount": 100,
            },
        )
        versions = [f for f in listing.files if f.file_name == file_name]
        if not versions:
            Log.info(f"B2 file {file_name} already absent")
            return

        for version in versions:
            send(
                self._client,
                "POST",
                self._api(session, "b2_delete_file_version"),
                provider=self.name,
                headers={"Authorization": session.authorization_token},
                json={"fileName": file_name, "fileId": version.file_id},
            )
        Log.info(f"Deleted {len(versions)} B2 version(s) of {file_name}")

    def owns_url(self, url: str) -> bool:
        host = urlparse(url).hostname or ""
        return host == self.DOMAIN or host.endswith(f".{self.DOMAIN}")

    def check_connection(self) -> bool:
        try:
            self.authorize()
        except StorageError as exc:
            Log.error(f"B2 connection failed: {exc}")
            return False
        Log.info("B2 connection successful")
        return True

    @staticmethod
    def object_id_from_url(url: str) -> str:
        """Extract the file name from ``<download_url>/file/<bucket>/<name>``.

        Raises:
            StorageError: if the URL has no ``/file/<bucket>/`` prefix.
        """
        path = urlparse(url).path
        _, marker, tail = path.partition("/file/")
        bucket_and_name = tail.split("/", 1)
        if not marker or len(bucket_and_name) != 2 or not bucket_and_name[1]:
            raise StorageError(f"Cannot extract B2 file name from {url}")
        return unquote(bucket_and_name[1])

    def _download_url(self, session: B2Session, file_name: str) -> tuple[str, bool]:
        """Return ``(url, signed)``; falls back to the unsigned URL on failure."""
        base = (
            f"{session.download_url}/file/{self._credentials.bucket_name}/"
            f"{quote(file_name, safe='/')}"
        )
        ttl = min(self._credentials.download_ttl_seconds, self.MAX_DOWNLOAD_TTL_SECONDS)
        try:
            grant = send_model(
                self._client,
                "POST",
                self._api(session, "b2_get_download_authorization"),
                B2DownloadGrant,
                provider=self.name,
                headers={"Authorization": session.authorization_token},
                json={
                    "bucketId": self._credentials.bucket_id,
                    "fileNamePrefix": file_name,
                    "validDurationInSeconds": ttl,
                },
            )
        except StorageError as exc:
            Log.warning(f"Could not sign B2 download URL, returning unsigned URL: {exc}")
            return base, False
        return f"{base}?Authorization={quote(grant.authorization_token, safe='')}", True

    @staticmethod
    def _api(session: B2Session, operation: str) -> str:
        return f"{session.api_url}/b2api/v2/{operation}"
