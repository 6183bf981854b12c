from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pdf_ingest.storage.exceptions import StorageError, StorageNetworkError

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_http_client(timeout_seconds: int) -> httpx.Client:
    """Create the client shared by all provider calls of one process."""
    return httpx.Client(timeout=httpx.Timeout(timeout_seconds))


def send(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    provider: str,
    **kwargs: Any,
) -> httpx.Response:
    """Issue a provider request and map failures onto storage errors.

    Raises:
        StorageNetworkError: on connection problems and timeouts.
        StorageError: on any non-2xx response or other request failure.
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.TransportError as exc:
        raise StorageNetworkError(f"{provider} network error: {exc}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise StorageError(f"{provider} request failed: {exc}") from exc

    if response.is_error:
        raise StorageError(
            f"{provider} API error {response.status_code}: {_error_detail(response)}"
        )
    return response


def send_json(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    provider: str,
    **kwargs: Any,
) -> dict[str, Any]:
    """Like :func:`send`, but decode and return a JSON object body."""
    response = send(client, method, url, provider=provider, **kwargs)
    try:
        payload = response.json()
    except ValueError as exc:
        raise StorageError(f"{provider} returned invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise StorageError(f"{provider} returned a non-object JSON response")
    return payload


def send_model(
    client: httpx.Client,
    method: str,
    url: str,
    model: type[ModelT],
    *,
    provider: str,
    **kwargs: Any,
) -> ModelT:
    """Like :func:`send_json`, but validate the body into ``model``."""
    payload = send_json(client, method, url, provider=provider, **kwargs)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise StorageError(f"{provider} returned an unexpected response: {exc}") from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and "message" in error:
            return str(error["message"])
        if "message" in payload:
            return str(payload["message"])
    return response.text[:200]
