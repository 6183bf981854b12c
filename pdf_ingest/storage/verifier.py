import httpx

from pdf_ingest.logging.logger import Log
from pdf_ingest.storage.base import BaseObjectStore
from pdf_ingest.storage.exceptions import StorageError


class AccessibilityVerifier:
    """Confirms a freshly stored object can be fetched anonymously."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def is_accessible(self, url: str) -> bool:
        """Issue a metadata-only request; True on any 2xx answer."""
        try:
            response = self._client.head(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            Log.warning(f"Accessibility check for {url} failed: {exc}")
            return False
        Log.info(f"Accessibility check for {url}: HTTP {response.status_code}")
        return response.is_success

    def verify(self, url: str, store: BaseObjectStore, object_id: str) -> bool:
        """Check ``url`` and, if unreadable, ask ``store`` once to make it public.

        The check is not repeated after remediation, so a False result means
        "not confirmed public" rather than "private".
        """
        if self.is_accessible(url):
            return True

        Log.warning(f"{url} is not publicly accessible, requesting public access")
        try:
            store.make_public(object_id)
        except StorageError as exc:
            Log.error(f"Failed to make {object_id} public: {exc}")
        return False
