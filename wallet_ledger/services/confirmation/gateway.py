"""
Confirmation Gateway

DESIGN DECISION: Money-moving operations are confirmed by an injected
collaborator before they are committed.

The store applies the mutation tentatively, then awaits the gateway:
- confirm() returns  → the tentative state is committed and persisted
- confirm() raises   → the tentative state is discarded (rollback)
- confirm() hangs    → the store's timeout cancels it, then rollback

The gateway never sees or touches ledger state. It only answers
"may this operation go through?".
"""

import asyncio
import re
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field

from wallet_ledger.config import get_settings


class ConfirmationRequest(BaseModel):
    """What the user is being asked to confirm."""

    operation: str = Field(..., description="e.g. 'fund_wallet', 'transfer_internal'")
    amount: Decimal
    account_ids: list[str] = Field(default_factory=list)
    description: str


class ConfirmationFailedError(Exception):
    """The external confirmation step rejected or failed the operation."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class ConfirmationGateway(ABC):
    """Confirms pending operations."""

    @abstractmethod
    async def confirm(self, request: ConfirmationRequest) -> None:
        """
        Confirm a pending operation.

        Raises:
            ConfirmationFailedError: If the operation must not go through
        """
        pass


class AutoApproveGateway(ConfirmationGateway):
    """Approves everything immediately. For scripts and tests."""

    async def confirm(self, request: ConfirmationRequest) -> None:
        return None


PIN_PATTERN = re.compile(r"^\d{4}$")

PinProvider = Callable[[ConfirmationRequest], Awaitable[Optional[str]]]


class PinConfirmationGateway(ConfirmationGateway):
    """
    PIN-gated confirmation with a simulated processing delay.

    The PIN provider is whatever asks the user (a prompt, a modal).
    Returning None means the user dismissed the prompt.
    """

    def __init__(
        self,
        pin_provider: PinProvider,
        expected_pin: str,
        delay_seconds: Optional[float] = None,
    ):
        if not PIN_PATTERN.match(expected_pin):
            raise ValueError("PIN must be exactly 4 digits")
        self._pin_provider = pin_provider
        self._expected_pin = expected_pin
        if delay_seconds is None:
            delay_seconds = get_settings().ledger.confirmation_delay_seconds
        self._delay_seconds = delay_seconds

    async def confirm(self, request: ConfirmationRequest) -> None:
        pin = await self._pin_provider(request)
        if pin is None:
            raise ConfirmationFailedError("Confirmation cancelled", retryable=True)
        if not PIN_PATTERN.match(pin):
            raise ConfirmationFailedError("PIN must be exactly 4 digits")
        if pin != self._expected_pin:
            raise ConfirmationFailedError("Incorrect PIN")

        # Stand-in for the processing round trip
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
