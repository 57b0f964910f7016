"""Azure storage account, blob container and private networking adapters."""

from .access import AzureAccessRoleService
from .factory import AzureServiceFactory
from .storage import AzureObjectStorageService

__all__ = ["AzureAccessRoleService", "AzureObjectStorageService", "AzureServiceFactory"]
