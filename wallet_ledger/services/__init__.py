"""Services package."""

from wallet_ledger.services.confirmation import (
    AutoApproveGateway,
    ConfirmationFailedError,
    ConfirmationGateway,
    ConfirmationRequest,
    PinConfirmationGateway,
)
from wallet_ledger.services.storage import (
    CollectionStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Confirmation
    "AutoApproveGateway",
    "ConfirmationFailedError",
    "ConfirmationGateway",
    "ConfirmationRequest",
    "PinConfirmationGateway",
    # Storage
    "CollectionStorageInterface",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageConnectionError",
    "StorageError",
]
