# tests/fixtures/storage.py
"""In-memory stand-ins for the storage layer.

FakeBlobStore implements the BlobStore protocol over a dict of
blob name -> headers, with per-blob failure injection for both the
properties fetch and the tier change.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from blobaudit.errors import BlobRequestError
from blobaudit.storage.blobs import LAST_ACCESS_TIME_HEADER, BlobPropertiesResult

LAST_ACCESS_VALUE = "Mon, 01 Jan 2024 10:00:00 GMT"


def tracked() -> dict[str, str]:
    """Headers for a blob that has last access time tracking."""
    return {LAST_ACCESS_TIME_HEADER: LAST_ACCESS_VALUE, "x-ms-blob-type": "BlockBlob"}


def untracked() -> dict[str, str]:
    """Headers for a blob without last access time."""
    return {"x-ms-blob-type": "BlockBlob"}


@dataclass
class FakeBlobStore:
    """BlobStore over a dict, listing in insertion order."""

    blobs: Mapping[str, Mapping[str, str]]
    container_name: str = "test-container"
    properties_failures: set[str] = field(default_factory=set)
    tier_failures: set[str] = field(default_factory=set)
    listing_error: BlobRequestError | None = None
    tier_calls: list[tuple[str, str]] = field(default_factory=list)
    properties_calls: list[str] = field(default_factory=list)
    listed_prefixes: list[str | None] = field(default_factory=list)

    def list_blob_names(self, prefix: str | None = None) -> Iterator[str]:
        self.listed_prefixes.append(prefix)
        for name in self.blobs:
            if prefix is None or name.startswith(prefix):
                yield name
        if self.listing_error is not None:
            raise self.listing_error

    def get_properties(self, blob_name: str) -> BlobPropertiesResult:
        self.properties_calls.append(blob_name)
        if blob_name in self.properties_failures:
            raise BlobRequestError(
                "get_properties",
                "The specified blob does not exist.",
                blob_name=blob_name,
                status_code=404,
                error_code="BlobNotFound",
            )
        return BlobPropertiesResult(name=blob_name, headers=self.blobs[blob_name])

    def set_tier(self, blob_name: str, tier: str) -> None:
        if blob_name in self.tier_failures:
            raise BlobRequestError(
                "set_tier",
                "This request is not authorized to perform this operation.",
                blob_name=blob_name,
                status_code=403,
                error_code="AuthorizationPermissionMismatch",
            )
        self.tier_calls.append((blob_name, tier))


class FakeProvider:
    """ContainerProvider that hands out a prepared FakeBlobStore."""

    auth_method = "fake"

    def __init__(self, store: FakeBlobStore) -> None:
        self.store = store
        self.requested: list[str] = []

    def get_container(self, container_name: str) -> FakeBlobStore:
        self.requested.append(container_name)
        return self.store
