# src/blobaudit/storage/auth.py
"""Credential providers for reaching an Azure Blob container.

Two authentication methods (mutually exclusive):
1. Managed Identity - DefaultAzureCredential against an account URL
2. Connection string - credentials embedded in the connection string

Providers are injected into the Auditor so tests can hand it a fake
container instead of a live service client.

IMPORTANT: Connection strings carry account keys. Pass them through
environment variables (${AZURE_STORAGE_CONNECTION_STRING}), never commit
them to settings files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from blobaudit.core.config import AuthMode, parse_auth_mode
from blobaudit.core.logging import get_logger
from blobaudit.errors import ConfigurationError, InvalidAuthModeError
from blobaudit.storage.blobs import AzureContainerStore, BlobStore

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential
    from azure.storage.blob import BlobServiceClient

logger = get_logger(__name__)


class ContainerProvider(Protocol):
    """Resolves a container name to a BlobStore."""

    auth_method: str

    def get_container(self, container_name: str) -> BlobStore: ...


class ManagedIdentityProvider:
    """Authenticate with the ambient Azure identity (DefaultAzureCredential).

    Works for managed identities on Azure-hosted workloads as well as
    developer logins (az login, VS Code) when run locally.
    """

    auth_method = "managed_identity"

    def __init__(self, account_url: str, credential: TokenCredential | None = None) -> None:
        self._account_url = account_url
        self._credential = credential

    def create_blob_service_client(self) -> BlobServiceClient:
        """Create a BlobServiceClient for the account URL.

        Raises:
            ImportError: If azure-storage-blob or azure-identity is not installed.
            ConfigurationError: If the SDK rejects the account URL.
        """
        try:
            from azure.storage.blob import BlobServiceClient
        except ImportError as e:
            raise ImportError("azure-storage-blob is required. Install with: uv pip install azure-storage-blob") from e

        credential = self._credential
        if credential is None:
            try:
                from azure.identity import DefaultAzureCredential
            except ImportError as e:
                raise ImportError("azure-identity is required for Managed Identity auth. Install with: uv pip install azure-identity") from e
            credential = DefaultAzureCredential()

        try:
            return BlobServiceClient(self._account_url, credential=credential)
        except ValueError as e:
            raise ConfigurationError(f"Invalid account URL {self._account_url!r}: {e}") from e

    def get_container(self, container_name: str) -> BlobStore:
        service_client = self.create_blob_service_client()
        logger.debug("Opened container", auth_method=self.auth_method, account_url=self._account_url, container=container_name)
        return AzureContainerStore(service_client.get_container_client(container_name))


class ConnectionStringProvider:
    """Authenticate with a storage account connection string."""

    auth_method = "connection_string"

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string

    def create_blob_service_client(self) -> BlobServiceClient:
        """Create a BlobServiceClient from the connection string.

        Raises:
            ImportError: If azure-storage-blob is not installed.
            ConfigurationError: If the SDK cannot parse the connection string.
        """
        try:
            from azure.storage.blob import BlobServiceClient
        except ImportError as e:
            raise ImportError("azure-storage-blob is required. Install with: uv pip install azure-storage-blob") from e

        try:
            return BlobServiceClient.from_connection_string(self._connection_string)
        except ValueError as e:
            # Never echo the connection string, it carries the account key
            raise ConfigurationError(f"Invalid connection string: {e}") from e

    def get_container(self, container_name: str) -> BlobStore:
        service_client = self.create_blob_service_client()
        # Never log the connection string, it carries the account key
        logger.debug("Opened container", auth_method=self.auth_method, container=container_name)
        return AzureContainerStore(service_client.get_container_client(container_name))


def create_provider(auth_mode: AuthMode | str, endpoint: str) -> ContainerProvider:
    """Build the provider for an auth mode.

    Args:
        auth_mode: AuthMode or one of its aliases (mi, cs, --mi, --cs).
        endpoint: Account URL for managed identity, connection string otherwise.

    Raises:
        InvalidAuthModeError: If auth_mode is not a supported mode.
    """
    mode = parse_auth_mode(auth_mode)
    if mode is AuthMode.MANAGED_IDENTITY:
        return ManagedIdentityProvider(endpoint)
    if mode is AuthMode.CONNECTION_STRING:
        return ConnectionStringProvider(endpoint)
    raise InvalidAuthModeError(auth_mode)
