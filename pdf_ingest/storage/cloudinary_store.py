import hashlib
import re
import time
from typing import ClassVar
from urllib.parse import quote, unquote, urlparse

import httpx

from pdf_ingest.config.storage import CloudinaryCredentials
from pdf_ingest.logging.logger import Log, format_mb
from pdf_ingest.storage.base import BaseObjectStore
from pdf_ingest.storage.exceptions import StorageError
from pdf_ingest.storage.http import send, send_model
from pdf_ingest.storage.models import StoredObject
from pdf_ingest.storage.responses import CloudinaryDestroy, CloudinaryUpload

_VERSION_SEGMENT = re.compile(r"^v\d+$")


class CloudinaryStore(BaseObjectStore):
    """Primary store: Cloudinary raw uploads through the REST API.

    PDFs are stored as ``raw`` resources so the delivered bytes are the
    uploaded bytes. The format is pinned by the ``.pdf`` suffix of the
    public id, which raw delivery URLs keep.
    """

    name: ClassVar[str] = "cloudinary"

    API_BASE: ClassVar[str] = "https://api.cloudinary.com/v1_1"
    DELIVERY_HOST: ClassVar[str] = "res.cloudinary.com"
    RESOURCE_TYPE: ClassVar[str] = "raw"

    def __init__(self, credentials: CloudinaryCredentials, client: httpx.Client) -> None:
        self._credentials = credentials
        self._client = client

    def upload(self, buffer: bytes, file_name: str, content_type: str) -> StoredObject:
        public_id = file_name if file_name.endswith(".pdf") else f"{file_name}.pdf"
        params = {
            "public_id": public_id,
            "folder": self._credentials.folder,
            "type": "upload",
            "access_mode": "public",
            "overwrite": "true",
            "invalidate": "true",
            "use_filename": "false",
            "unique_filename": "false",
        }
        Log.info(f"Uploading {format_mb(len(buffer))} to Cloudinary as {public_id}")
        uploaded = send_model(
            self._client,
            "POST",
            self._api_url(f"{self.RESOURCE_TYPE}/upload"),
            CloudinaryUpload,
            provider=self.name,
            data=self._signed(params),
            files={"file": (public_id, buffer, content_type)},
        )

        Log.info(f"Cloudinary upload complete: {uploaded.secure_url}")
        return StoredObject(
            url=uploaded.secure_url,
            object_id=uploaded.public_id,
            size_bytes=len(buffer),
        )

    def make_public(self, object_id: str) -> None:
        """Re-flag an uploaded raw resource as public and purge cached copies."""
        send(
            self._client,
            "POST",
            self._api_url(f"resources/{self.RESOURCE_TYPE}/upload/{quote(object_id, safe='/')}"),
            provider=self.name,
            auth=(self._credentials.api_key, self._credentials.api_secret),
            data={"access_mode": "public", "invalidate": "true"},
        )
        Log.info(f"Cloudinary resource {object_id} marked public")

    def delete(self, url: str) -> None:
        resource_type, public_id = self.object_id_from_url(url)
        destroyed = send_model(
            self._client,
            "POST",
            self._api_url(f"{resource_type}/destroy"),
            CloudinaryDestroy,
            provider=self.name,
            data=self._signed({"public_id": public_id, "invalidate": "true"}),
        )
        result = destroyed.result
        if result == "not found":
            Log.info(f"Cloudinary resource {public_id} already absent")
        elif result != "ok":
            raise StorageError(f"cloudinary destroy returned {result!r} for {public_id}")
        else:
            Log.info(f"Deleted Cloudinary resource {public_id}")

    def owns_url(self, url: str) -> bool:
        return urlparse(url).hostname == self.DELIVERY_HOST

    def check_connection(self) -> bool:
        try:
            send(
                self._client,
                "GET",
                self._api_url("ping"),
                provider=self.name,
                auth=(self._credentials.api_key, self._credentials.api_secret),
            )
        except StorageError as exc:
            Log.error(f"Cloudinary connection failed: {exc}")
            return False
        Log.info("Cloudinary connection successful")
        return True

    @classmethod
    def object_id_from_url(cls, url: str) -> tuple[str, str]:
        """Extract ``(resource_type, public_id)`` from a delivery URL.

        ``https://res.cloudinary.com/<cloud>/raw/upload/v17/acadmix/pdfs/1_a.pdf``
        yields ``("raw", "acadmix/pdfs/1_a.pdf")``. Raw public ids keep their
        extension; image and video ids do not.

        Raises:
            StorageError: if the URL is not a Cloudinary delivery URL.
        """
        parts = [unquote(p) for p in urlparse(url).path.split("/") if p]
        # <cloud>/<resource_type>/<delivery_type>/[v<version>/]<public_id...>
        if len(parts) < 4:
            raise StorageError(f"Cannot extract Cloudinary public id from {url}")
        resource_type = parts[1]
        rest = parts[3:]
        if rest and _VERSION_SEGMENT.match(rest[0]):
            rest = rest[1:]
        if not rest:
            raise StorageError(f"Cannot extract Cloudinary public id from {url}")
        public_id = "/".join(rest)
        if resource_type != "raw":
            public_id = public_id.rsplit(".", 1)[0]
        return resource_type, public_id

    def _api_url(self, path: str) -> str:
        return f"{self.API_BASE}/{self._credentials.cloud_name}/{path}"

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        """Add timestamp, api key and the SHA-1 request signature."""
        signed = {k: v for k, v in params.items() if v != ""}
        signed["timestamp"] = str(int(time.time()))
        to_sign = "&".join(f"{k}={signed[k]}" for k in sorted(signed))
        signed["signature"] = hashlib.sha1(
            (to_sign + self._credentials.api_secret).encode("utf-8")
        ).hexdigest()
        signed["api_key"] = self._credentials.api_key
        return signed
