"""
Core Data Models for the Wallet Ledger

These models define the strict schemas for everything the ledger store owns:
accounts, transactions, savings goals, filters, presets and the user profile.
They are designed to:
1. Keep money exact (Decimal, always 2 decimal places)
2. Round-trip the camelCase JSON collections the dashboard persisted
3. Carry direction on Transaction.type, never on the sign of amount
4. Be cheap to snapshot (LedgerState) so a mutation can be discarded

DESIGN DECISION: running_balance is a DERIVED field.
It is cached on the transaction for display, but it is recomputed by the
balance engine on every write and is never trusted as input.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Convert a number to a Decimal rounded to cents.

    Floats go through str() first so 0.1 stays 0.1 instead of
    0.1000000000000000055511151231257827.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce_decimal(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _blank_to_none(value: Any) -> Any:
    # The dashboard stored unset inputs as "" rather than null
    if isinstance(value, str) and not value.strip():
        return None
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_decimal),
    AfterValidator(to_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]

OptionalMoney = Annotated[
    Optional[Decimal],
    BeforeValidator(_blank_to_none),
    BeforeValidator(_coerce_decimal),
    AfterValidator(lambda v: to_money(v) if v is not None else None),
    PlainSerializer(
        lambda v: float(v) if v is not None else None,
        return_type=Optional[float],
        when_used="json",
    ),
]

OptionalDate = Annotated[Optional[dt.date], BeforeValidator(_blank_to_none)]


class LedgerModel(BaseModel):
    """Base for persisted models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_storage(self) -> dict:
        """Dump to the JSON-compatible camelCase dict used by the collections."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of account a user can hold."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    OTHER = "other"


class TransactionType(str, Enum):
    """
    Direction of a transaction.

    CREDIT adds to the account balance, DEBIT subtracts from it.
    """
    CREDIT = "credit"
    DEBIT = "debit"

    def signed(self, amount: Decimal) -> Decimal:
        """Effect of `amount` on a balance when applied in this direction."""
        return amount if self is TransactionType.CREDIT else -amount


class ErrorKind(str, Enum):
    """Why a mutation was refused."""
    VALIDATION = "validation"      # Malformed or out-of-range input
    CONFIRMATION = "confirmation"  # External confirmation failed, rolled back
    INTEGRITY = "integrity"        # Would break ledger history
    NOT_FOUND = "not_found"


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class Account(LedgerModel):
    """
    A money account.

    CRITICAL: balance is the ANCHOR balance. It already includes the effect
    of every transaction that belongs to the account. The balance engine
    peels transactions back off it to find the starting point.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    balance: Money = Decimal("0.00")
    type: AccountType = AccountType.CHECKING
    color: Optional[str] = None
    icon: Optional[str] = None
    is_archived: bool = False
    created_at: Optional[dt.datetime] = None
    account_number: Optional[str] = None
    description: Optional[str] = None

    @field_validator("is_archived", mode="before")
    @classmethod
    def default_archived(cls, v: Any) -> Any:
        """Older records stored isArchived as null."""
        return False if v is None else v


class Transaction(LedgerModel):
    """
    A single movement of money on one account.

    amount is always a non-negative magnitude. The direction lives in type.
    """

    id: str = Field(..., min_length=1)
    date: dt.date = Field(..., description="Calendar day of the transaction")
    timestamp: Optional[dt.datetime] = Field(
        default=None,
        description="Exact instant, when known",
    )
    merchant: str
    category: str
    amount: Money = Field(..., ge=0)
    type: TransactionType
    account_id: str = Field(..., min_length=1)
    running_balance: OptionalMoney = Field(
        default=None,
        description="Derived by the balance engine; never authoritative",
    )
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.type.signed(self.amount)

    @property
    def occurred_at(self) -> dt.datetime:
        """
        Instant used for chronological ordering.

        A transaction without a timestamp sorts at midnight UTC of its date.
        Naive timestamps are read as UTC.
        """
        if self.timestamp is None:
            return dt.datetime.combine(self.date, dt.time.min, tzinfo=dt.timezone.utc)
        if self.timestamp.tzinfo is None:
            return self.timestamp.replace(tzinfo=dt.timezone.utc)
        return self.timestamp


class Goal(LedgerModel):
    """
    A savings goal.

    allocated_amount is a separate pool from the linked account's balance.
    Money only moves between them through allocate/withdraw.

    is_completed requires BOTH conditions:
    allocated_amount >= target_amount AND today >= target_date.
    """

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=100)
    target_amount: Money = Field(..., gt=0)
    allocated_amount: Money = Field(default=Decimal("0.00"), ge=0)
    target_date: dt.date
    account_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    created_at: dt.datetime
    completed_at: Optional[dt.datetime] = None
    is_completed: bool = False

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.allocated_amount, Decimal("0.00"))

    def days_until_target(self, today: dt.date) -> int:
        return (self.target_date - today).days


# =============================================================================
# QUERY MODELS
# =============================================================================

class Filters(LedgerModel):
    """
    Declarative transaction filter.

    Transient UI state. Every field is optional; an all-default Filters
    matches everything. `categories` takes precedence over the legacy
    single `category` when both are set.
    """

    category: str = ""
    categories: list[str] = Field(default_factory=list)
    date_from: OptionalDate = None
    date_to: OptionalDate = None
    merchant: str = ""
    amount_min: OptionalMoney = None
    amount_max: OptionalMoney = None
    tags: list[str] = Field(default_factory=list)
    search_query: str = ""

    @field_validator("category", "merchant", "search_query", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class FilterPreset(LedgerModel):
    """A named, saved filter specification."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=60)
    filters: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial Filters, stored with camelCase keys",
    )

    def to_filters(self) -> Filters:
        """Merge the stored partial filters over the defaults."""
        return Filters.model_validate(self.filters)


class User(LedgerModel):
    """User profile. Passed through and persisted; not part of any ledger invariant."""

    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    avatar_color: Optional[str] = None
    plan: Optional[str] = None
    role: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    date_of_birth: OptionalDate = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ExternalRecipient(BaseModel):
    """Someone outside the wallet who can receive an external transfer."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1)


# =============================================================================
# STATE AND RESULTS
# =============================================================================

class LedgerState(BaseModel):
    """
    The collections a mutation may touch together.

    A mutation works on a deep copy and the store swaps it in whole,
    so discarding a failed operation is just keeping the old object.
    """

    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)

    def snapshot(self) -> "LedgerState":
        return self.model_copy(deep=True)

    def account(self, account_id: str) -> Optional[Account]:
        return next((a for a in self.accounts if a.id == account_id), None)

    def goal(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    def transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'insufficient_funds')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one mutation's inputs."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[str]:
        return next(
            (issue.message for issue in self.issues if issue.severity == "error"),
            None,
        )


class OperationResult(BaseModel):
    """
    Explicit outcome of a mutation operation.

    Expected business-rule failures are returned here, never raised.
    persistence_error is set when the in-memory commit succeeded but the
    storage write did not.
    retryable is set when the same request may simply be tried again,
    as after a declined or timed-out confirmation.
    """

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    transaction_ids: list[str] = Field(default_factory=list)
    entity_id: Optional[str] = None
    persistence_error: Optional[str] = None
    retryable: bool = False

    @classmethod
    def ok(
        cls,
        transaction_ids: Optional[list[str]] = None,
        entity_id: Optional[str] = None,
    ) -> "OperationResult":
        return cls(
            success=True,
            transaction_ids=transaction_ids or [],
            entity_id=entity_id,
        )

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        error: str,
        issues: Optional[list[ValidationIssue]] = None,
        retryable: bool = False,
    ) -> "OperationResult":
        return cls(
            success=False,
            error=error,
            error_kind=kind,
            issues=issues or [],
            retryable=retryable,
        )

    @classmethod
    def invalid(
        cls,
        validation: ValidationResult,
        kind: ErrorKind = ErrorKind.VALIDATION,
    ) -> "OperationResult":
        return cls.fail(
            kind,
            validation.first_error or "Invalid input",
            issues=validation.issues,
        )
