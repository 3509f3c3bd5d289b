from .access_control import AccessControlClient
from .auth import AuthClient
from .base import BaseClient
from .breakages_client import BreakagesClient
from .directory_client import DirectoryClient
from .dispatches_client import DispatchesClient
from .products_client import ProductsClient

__all__ = [
    "AccessControlClient",
    "AuthClient",
    "BaseClient",
    "BreakagesClient",
    "DirectoryClient",
    "DispatchesClient",
    "ProductsClient",
]
