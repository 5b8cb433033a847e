"""pybookvault - Async GraphQL book catalogue client with an optimistic cache."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybookvault")
except PackageNotFoundError:
    __version__ = "0+local"
from pybookvault.client import VaultClient
from pybookvault.config import VaultConfig
from pybookvault.exceptions import (
    VaultApiError,
    VaultConfigError,
    VaultError,
    VaultTransportError,
    VaultValidationError,
)
from pybookvault.models import AddBookRequest, Book, DeleteBookRequest, Entity
from pybookvault.state.collection import Collection
from pybookvault.state.pending import (
    OperationKind,
    PendingDelete,
    PendingInsert,
    PendingOperation,
    ResolveOutcome,
)
from pybookvault.state.reconciler import OptimisticCacheReconciler

__all__ = [
    "__version__",
    "AddBookRequest",
    "Book",
    "Collection",
    "DeleteBookRequest",
    "Entity",
    "OperationKind",
    "OptimisticCacheReconciler",
    "PendingDelete",
    "PendingInsert",
    "PendingOperation",
    "ResolveOutcome",
    "VaultApiError",
    "VaultClient",
    "VaultConfig",
    "VaultConfigError",
    "VaultError",
    "VaultTransportError",
    "VaultValidationError",
]
