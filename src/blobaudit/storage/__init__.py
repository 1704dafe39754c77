"""Azure Blob Storage access: credential providers and container stores."""

from blobaudit.storage.auth import (
    ConnectionStringProvider,
    ContainerProvider,
    ManagedIdentityProvider,
    create_provider,
)
from blobaudit.storage.blobs import (
    COLD_TIER,
    LAST_ACCESS_TIME_HEADER,
    AzureContainerStore,
    BlobPropertiesResult,
    BlobStore,
)

__all__ = [
    "COLD_TIER",
    "LAST_ACCESS_TIME_HEADER",
    "AzureContainerStore",
    "BlobPropertiesResult",
    "BlobStore",
    "ConnectionStringProvider",
    "ContainerProvider",
    "ManagedIdentityProvider",
    "create_provider",
]
