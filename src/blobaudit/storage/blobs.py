# src/blobaudit/storage/blobs.py
"""Container access for the auditor.

BlobStore is the transport-agnostic surface the auditor consumes: list blob
names, fetch properties, set tier. AzureContainerStore implements it on top
of azure-storage-blob's ContainerClient.

Trust boundary:
    - Azure SDK calls = EXTERNAL SYSTEM -> wrap with try/except, translate
      AzureError into BlobRequestError
    - Our own state = OUR CODE -> let it crash
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from azure.core.exceptions import AzureError

from blobaudit.core.logging import get_logger
from blobaudit.errors import BlobRequestError

if TYPE_CHECKING:
    from azure.storage.blob import ContainerClient

logger = get_logger(__name__)

# Returned by Get Blob Properties only when the account has last access time
# tracking enabled and the blob has been read since it was turned on.
LAST_ACCESS_TIME_HEADER = "x-ms-last-access-time"

COLD_TIER = "Cold"


@dataclass(frozen=True, slots=True)
class BlobPropertiesResult:
    """Raw outcome of a properties request for one blob.

    Headers are stored with lowercased names; lookups are case-insensitive.
    Header values are passed through untouched, never parsed.
    """

    name: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", {k.lower(): v for k, v in self.headers.items()})

    def try_get_header(self, header_name: str) -> str | None:
        """Return the raw header value, or None if the response lacked it."""
        return self.headers.get(header_name.lower())


class BlobStore(Protocol):
    """Operations the auditor needs from a single container."""

    @property
    def container_name(self) -> str: ...

    def list_blob_names(self, prefix: str | None = None) -> Iterator[str]:
        """Yield blob names in listing order, optionally filtered by prefix.

        Raises:
            BlobRequestError: If a listing page cannot be fetched.
        """
        ...

    def get_properties(self, blob_name: str) -> BlobPropertiesResult:
        """Fetch properties for one blob.

        Raises:
            BlobRequestError: If the request fails for any reason.
        """
        ...

    def set_tier(self, blob_name: str, tier: str) -> None:
        """Change the access tier of one blob.

        Raises:
            BlobRequestError: If the request fails for any reason.
        """
        ...


class AzureContainerStore:
    """BlobStore over an azure.storage.blob ContainerClient."""

    def __init__(self, container_client: ContainerClient) -> None:
        self._container_client = container_client

    @property
    def container_name(self) -> str:
        name: str = self._container_client.container_name
        return name

    def list_blob_names(self, prefix: str | None = None) -> Iterator[str]:
        # ItemPaged fetches the next page on demand, so errors can surface
        # mid-iteration, not just on the first call.
        try:
            for blob in self._container_client.list_blobs(name_starts_with=prefix):
                yield blob.name
        except AzureError as e:
            raise BlobRequestError.from_azure("list_blobs", e) from e

    def get_properties(self, blob_name: str) -> BlobPropertiesResult:
        captured: dict[str, str] = {}

        def _capture_headers(response: Any) -> None:
            captured.update(response.http_response.headers)

        blob_client = self._container_client.get_blob_client(blob_name)
        try:
            blob_client.get_blob_properties(raw_response_hook=_capture_headers)
        except AzureError as e:
            raise BlobRequestError.from_azure("get_properties", e, blob_name=blob_name) from e

        logger.debug("Fetched blob properties", blob=blob_name, header_count=len(captured))
        return BlobPropertiesResult(name=blob_name, headers=captured)

    def set_tier(self, blob_name: str, tier: str) -> None:
        blob_client = self._container_client.get_blob_client(blob_name)
        try:
            blob_client.set_standard_blob_tier(tier)
        except AzureError as e:
            raise BlobRequestError.from_azure("set_tier", e, blob_name=blob_name) from e
