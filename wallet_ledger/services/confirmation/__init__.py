"""Confirmation services package."""

from wallet_ledger.services.confirmation.gateway import (
    AutoApproveGateway,
    ConfirmationFailedError,
    ConfirmationGateway,
    ConfirmationRequest,
    PinConfirmationGateway,
)

__all__ = [
    "AutoApproveGateway",
    "ConfirmationFailedError",
    "ConfirmationGateway",
    "ConfirmationRequest",
    "PinConfirmationGateway",
]
