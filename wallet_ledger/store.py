"""
Ledger Store

The single owner of wallet state. Every read goes through it and every
write is one of its operations:

1. Validate ALL inputs (nothing is touched on failure)
2. Build a tentative copy of the state and apply the change to it
3. Recompute running balances and goal completion on the copy
4. Confirm (money-moving operations only), then swap the copy in
5. Persist the touched collections and audit the outcome

DESIGN DECISION: Rollback is "keep the old object".
A mutation never edits live state. It edits a deep copy, so a failed
confirmation, a timeout or a cancelled task just leaves the previous
LedgerState in place. There is no compensating logic to get wrong.

DESIGN DECISION: Storage failures are SURFACED, never swallowed.
In-memory state is the source of truth. When a collection write fails,
the operation still succeeds in memory, the failure is logged and
audited, and the caller sees it on OperationResult.persistence_error.

Mutations are serialized with an asyncio.Lock. While a confirmation is
pending, readers see the tentative (optimistic) state, but no other
mutation can start from it.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Union
from uuid import uuid4

import structlog
from pydantic import ValidationError

from wallet_ledger.audit import AuditLogger
from wallet_ledger.config import LedgerSettings, get_settings
from wallet_ledger.ledger import (
    SystemClock,
    newly_completed,
    recompute_balances,
    sync_goals,
)
from wallet_ledger.models.audit import AuditEventType
from wallet_ledger.models.ledger import (
    Account,
    AccountType,
    ErrorKind,
    ExternalRecipient,
    FilterPreset,
    Filters,
    Goal,
    LedgerState,
    OperationResult,
    Transaction,
    TransactionType,
    User,
    ValidationIssue,
    ValidationResult,
    to_money,
)
from wallet_ledger.queries import apply_filters, summarize_spending, total_assets
from wallet_ledger.queries.analytics import SpendingSummary
from wallet_ledger.seed import SeedData
from wallet_ledger.services.confirmation import (
    AutoApproveGateway,
    ConfirmationFailedError,
    ConfirmationGateway,
    ConfirmationRequest,
)
from wallet_ledger.services.storage import (
    ACCOUNTS,
    FILTER_PRESETS,
    GOALS,
    TRANSACTIONS,
    USER,
    CollectionStorageInterface,
    InMemoryStorage,
    StorageError,
)
from wallet_ledger.validation import LedgerValidator, format_currency


# User fields that only the store itself may set
PROTECTED_USER_FIELDS = {"id", "created_at", "updated_at"}


def _not_found(field: str, message: str) -> ValidationResult:
    return ValidationResult(issues=[
        ValidationIssue(field=field, issue_type="not_found", message=message),
    ])


def _issues_from(error: ValidationError) -> ValidationResult:
    """Turn a pydantic ValidationError into ledger validation issues."""
    return ValidationResult(issues=[
        ValidationIssue(
            field=".".join(str(part) for part in err["loc"]) or "value",
            issue_type="invalid_value",
            message=err["msg"],
        )
        for err in error.errors()
    ])


def clean_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """Strip tags, drop empty ones and de-duplicate keeping first occurrence."""
    cleaned: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class LedgerStore:
    """
    Explicit state container for accounts, transactions, goals,
    filters, filter presets and the user profile.

    All collaborators are injected; the defaults give an in-memory,
    auto-approving store on the system clock.
    """

    def __init__(
        self,
        storage: Optional[CollectionStorageInterface] = None,
        gateway: Optional[ConfirmationGateway] = None,
        clock: Optional[Any] = None,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._storage = storage or InMemoryStorage()
        self._gateway = gateway or AutoApproveGateway()
        self._clock = clock or SystemClock()
        self._audit = audit_logger or AuditLogger(
            storage=self._storage,
            max_events=self._settings.max_audit_events,
        )
        self._validator = validator or LedgerValidator(self._settings.currency_code)
        self._logger = structlog.get_logger("wallet_ledger.store")

        self._state = LedgerState()
        self._filters = Filters()
        self._presets: list[FilterPreset] = []
        self._user: Optional[User] = None
        self._lock = asyncio.Lock()
        # Goal ids whose completion is already in the audit log
        self._completions_reported: set[str] = set()

    # =========================================================================
    # BOOTSTRAP
    # =========================================================================

    async def load(self, seed: Optional[SeedData] = None) -> OperationResult:
        """
        Load every collection from storage, seeding the absent ones.

        A seed is written exactly once: the first time its collection is
        found missing. A collection that could not be READ is served from
        the seed for this session but never overwritten.

        Args:
            seed: Initial data. Defaults to the packaged demo fixtures.
        """
        seed = seed if seed is not None else SeedData.default()
        seeded = {
            ACCOUNTS: [a.to_storage() for a in seed.accounts],
            TRANSACTIONS: [t.to_storage() for t in seed.transactions],
            GOALS: [g.to_storage() for g in seed.goals],
            FILTER_PRESETS: [p.to_storage() for p in seed.filter_presets],
            USER: seed.user.to_storage() if seed.user else None,
        }

        async with self._lock:
            raw: dict[str, Any] = {}
            to_write = {TRANSACTIONS}
            unreadable = set()
            for collection, initial in seeded.items():
                try:
                    value = await self._storage.get(collection)
                except StorageError as e:
                    self._logger.warning(
                        "storage_read_failed",
                        collection=collection,
                        error=str(e),
                    )
                    unreadable.add(collection)
                    value = None
                if value is None:
                    value = initial
                    if initial is not None:
                        to_write.add(collection)
                raw[collection] = value

            state = LedgerState(
                accounts=[Account.model_validate(a) for a in raw[ACCOUNTS] or []],
                transactions=[Transaction.model_validate(t) for t in raw[TRANSACTIONS] or []],
                goals=[Goal.model_validate(g) for g in raw[GOALS] or []],
            )
            self._completions_reported = {g.id for g in state.goals if g.is_completed}
            self._refresh(state)
            self._state = state
            self._presets = [FilterPreset.model_validate(p) for p in raw[FILTER_PRESETS] or []]
            self._user = User.model_validate(raw[USER]) if raw[USER] else None
            self._filters = Filters()

            self._logger.info(
                "ledger_loaded",
                accounts=len(state.accounts),
                transactions=len(state.transactions),
                goals=len(state.goals),
                seeded=sorted(to_write - {TRANSACTIONS}),
            )
            error = await self._persist(*sorted(to_write - unreadable))
            await self._audit_completions()

        result = OperationResult.ok()
        result.persistence_error = error
        return result

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def accounts(self) -> list[Account]:
        return list(self._state.accounts)

    def active_accounts(self) -> list[Account]:
        return [a for a in self._state.accounts if not a.is_archived]

    def archived_accounts(self) -> list[Account]:
        return [a for a in self._state.accounts if a.is_archived]

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._state.account(account_id)

    @property
    def transactions(self) -> list[Transaction]:
        """All transactions, newest first, with running balances stamped."""
        return list(self._state.transactions)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._state.transaction(transaction_id)

    @property
    def goals(self) -> list[Goal]:
        """
        All goals, re-synced against today's date on every read.

        A goal whose target date passed since the last mutation shows up
        completed here without any write having happened.
        """
        self._state.goals = sync_goals(
            self._state.goals, self._clock.today(), self._clock.now(),
        )
        return list(self._state.goals)

    def active_goals(self) -> list[Goal]:
        return [g for g in self.goals if not g.is_completed]

    def completed_goals(self) -> list[Goal]:
        return [g for g in self.goals if g.is_completed]

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    @property
    def filters(self) -> Filters:
        return self._filters

    @property
    def filter_presets(self) -> list[FilterPreset]:
        return list(self._presets)

    @property
    def user(self) -> Optional[User]:
        return self._user

    def filtered_transactions(self) -> list[Transaction]:
        """Transactions matching the current filters, newest first."""
        return apply_filters(self._state.transactions, self._filters)

    def total_assets(self) -> Decimal:
        """Sum of balances over active accounts."""
        return total_assets(a.balance for a in self.active_accounts())

    def spending_summary(self) -> Optional[SpendingSummary]:
        """Statistics over the currently filtered transactions."""
        return summarize_spending(self.filtered_transactions(), self._clock.today())

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _refresh(self, state: LedgerState) -> None:
        """Recompute every derived field on a tentative state."""
        state.transactions = recompute_balances(state.accounts, state.transactions)
        state.goals = sync_goals(state.goals, self._clock.today(), self._clock.now())

    def _new_id(self, prefix: str, *parts: str) -> str:
        millis = int(self._clock.now().timestamp() * 1000)
        return "-".join([prefix, str(millis), *parts, uuid4().hex[:6]])

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self._settings.currency_code)

    @staticmethod
    def _adjust_balance(state: LedgerState, account_id: str, delta: Decimal) -> None:
        state.accounts = [
            a.model_copy(update={"balance": to_money(a.balance + delta)})
            if a.id == account_id else a
            for a in state.accounts
        ]

    @staticmethod
    def _update_goal(state: LedgerState, goal_id: str, **update: Any) -> None:
        state.goals = [
            g.model_copy(update=update) if g.id == goal_id else g
            for g in state.goals
        ]

    def _post(self, state: LedgerState, *transactions: Transaction) -> None:
        """Add transactions to a state and move their accounts' anchors."""
        for transaction in transactions:
            state.transactions.append(transaction)
            self._adjust_balance(state, transaction.account_id, transaction.signed_amount)

    def _transaction(
        self,
        transaction_id: str,
        account_id: str,
        amount: Decimal,
        direction: TransactionType,
        merchant: str,
        category: str,
        when: Optional[datetime] = None,
        **extra: Any,
    ) -> Transaction:
        when = when or self._clock.now()
        return Transaction(
            id=transaction_id,
            date=when.date(),
            timestamp=when,
            merchant=merchant,
            category=category,
            amount=amount,
            type=direction,
            account_id=account_id,
            **extra,
        )

    def _serialize(self, collection: str) -> Any:
        if collection == ACCOUNTS:
            return [a.to_storage() for a in self._state.accounts]
        if collection == TRANSACTIONS:
            return [t.to_storage() for t in self._state.transactions]
        if collection == GOALS:
            return [g.to_storage() for g in self._state.goals]
        if collection == FILTER_PRESETS:
            return [p.to_storage() for p in self._presets]
        if collection == USER:
            return self._user.to_storage() if self._user else None
        raise KeyError(f"Unknown collection: {collection}")

    async def _persist(self, *collections: str) -> Optional[str]:
        """
        Write collections from the committed state.

        Returns a description of every failed write, or None.
        """
        failures = []
        for collection in collections:
            try:
                await self._storage.set(collection, self._serialize(collection))
            except StorageError as e:
                self._logger.error(
                    "persistence_failed",
                    collection=collection,
                    error=str(e),
                )
                await self._audit.log_persistence_failed(collection, str(e))
                failures.append(f"{collection}: {e}")
        return "; ".join(failures) or None

    async def _reject(
        self,
        operation: str,
        validation: ValidationResult,
        kind: Optional[ErrorKind] = None,
    ) -> OperationResult:
        if kind is None:
            missing = any(i.issue_type == "not_found" for i in validation.issues)
            kind = ErrorKind.NOT_FOUND if missing else ErrorKind.VALIDATION
        self._logger.info(
            "operation_rejected",
            operation=operation,
            kind=kind.value,
            reason=self._validator.summarize(validation),
        )
        await self._audit.log_validation_rejected(
            operation, [issue.model_dump() for issue in validation.issues],
        )
        return OperationResult.invalid(validation, kind)

    async def _commit(
        self,
        tentative: LedgerState,
        collections: Iterable[str],
        transaction_ids: Optional[list[str]] = None,
        entity_id: Optional[str] = None,
    ) -> OperationResult:
        """Swap a tentative state in, persist it and audit goal completions."""
        self._refresh(tentative)
        self._state = tentative
        error = await self._persist(*collections)

        await self._audit_completions()

        result = OperationResult.ok(transaction_ids, entity_id)
        result.persistence_error = error
        return result

    async def _audit_completions(self) -> None:
        """Audit every completed goal once, however its completion was first seen."""
        goals = self._state.goals
        for goal in newly_completed(goals, self._completions_reported):
            self._completions_reported.add(goal.id)
            await self._audit.log_goal_event(AuditEventType.GOAL_COMPLETED, goal.id, goal.title)
        # A goal that dropped back below target reports again when it re-completes
        self._completions_reported &= {g.id for g in goals if g.is_completed}

    async def _confirm_and_commit(
        self,
        tentative: LedgerState,
        request: ConfirmationRequest,
        label: str,
        collections: Iterable[str],
        transaction_ids: list[str],
    ) -> OperationResult:
        """
        Show the tentative state, await confirmation, then commit or roll back.

        CRITICAL: the snapshot is restored on EVERY way out of the
        confirmation other than success, including cancellation.
        """
        snapshot = self._state
        self._refresh(tentative)
        self._state = tentative

        try:
            await asyncio.wait_for(
                self._gateway.confirm(request),
                timeout=self._settings.confirmation_timeout_seconds,
            )
        except (ConfirmationFailedError, asyncio.TimeoutError) as e:
            self._state = snapshot
            if isinstance(e, ConfirmationFailedError):
                reason, retryable = str(e), e.retryable
            else:
                reason, retryable = "Confirmation timed out", True
            self._logger.warning(
                "operation_rolled_back",
                operation=request.operation,
                reason=reason,
            )
            await self._audit.log_rollback(request.operation, reason)
            return OperationResult.fail(
                ErrorKind.CONFIRMATION,
                f"{label} failed. Please try again.",
                retryable=retryable,
            )
        except BaseException:
            self._state = snapshot
            self._logger.warning("operation_rolled_back", operation=request.operation)
            raise

        return await self._commit(tentative, collections, transaction_ids)

    # =========================================================================
    # MONEY MOVEMENT (confirmed)
    # =========================================================================

    async def fund_wallet(
        self,
        account_id: str,
        amount: Any,
        category: Optional[str] = None,
    ) -> OperationResult:
        """
        Add money to an account from outside the wallet.

        Creates one credit transaction "Wallet Funding".
        """
        async with self._lock:
            account = self._state.account(account_id)
            validation, value = self._validator.validate_funding(account, amount)
            if not validation.is_valid:
                return await self._reject("fund_wallet", validation)

            transaction = self._transaction(
                self._new_id("fund", account_id),
                account_id,
                value,
                TransactionType.CREDIT,
                "Wallet Funding",
                category or self._settings.default_funding_category,
            )
            tentative = self._state.snapshot()
            self._post(tentative, transaction)

            request = ConfirmationRequest(
                operation="fund_wallet",
                amount=value,
                account_ids=[account_id],
                description=f"Add {self._money(value)} to {account.name}",
            )
            result = await self._confirm_and_commit(
                tentative, request, "Funding", (ACCOUNTS, TRANSACTIONS), [transaction.id],
            )
            if result.success:
                await self._audit.log_wallet_funded(account_id, str(value), result.transaction_ids)
            return result

    async def transfer_internal(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Any,
        category: Optional[str] = None,
    ) -> OperationResult:
        """
        Move money between two wallet accounts.

        Creates a paired debit/credit sharing one timestamp. Both legs
        commit together or not at all.
        """
        async with self._lock:
            source = self._state.account(from_account_id)
            destination = self._state.account(to_account_id)
            validation, value = self._validator.validate_transfer(source, destination, amount)
            if not validation.is_valid:
                return await self._reject("transfer_internal", validation)

            now = self._clock.now()
            category = category or self._settings.default_transfer_category
            debit = self._transaction(
                self._new_id("transfer", "from", source.id),
                source.id,
                value,
                TransactionType.DEBIT,
                f"Transfer to {destination.name}",
                category,
                when=now,
            )
            credit = self._transaction(
                self._new_id("transfer", "to", destination.id),
                destination.id,
                value,
                TransactionType.CREDIT,
                f"Transfer from {source.name}",
                category,
                when=now,
            )
            tentative = self._state.snapshot()
            self._post(tentative, debit, credit)

            request = ConfirmationRequest(
                operation="transfer_internal",
                amount=value,
                account_ids=[source.id, destination.id],
                description=(
                    f"Transfer {self._money(value)} from {source.name} to {destination.name}"
                ),
            )
            result = await self._confirm_and_commit(
                tentative, request, "Transfer", (ACCOUNTS, TRANSACTIONS), [debit.id, credit.id],
            )
            if result.success:
                await self._audit.log_transfer(
                    source.id, destination.id, str(value), result.transaction_ids,
                )
            return result

    async def transfer_external(
        self,
        from_account_id: str,
        recipient: ExternalRecipient,
        amount: Any,
        category: Optional[str] = None,
    ) -> OperationResult:
        """Send money to someone outside the wallet. One debit, no credit leg."""
        async with self._lock:
            source = self._state.account(from_account_id)
            validation, value = self._validator.validate_transfer(
                source, None, amount, external=True,
            )
            if not validation.is_valid:
                return await self._reject("transfer_external", validation)

            debit = self._transaction(
                self._new_id("transfer", "external", source.id),
                source.id,
                value,
                TransactionType.DEBIT,
                f"Transfer to {recipient.name} ({recipient.account_number})",
                category or self._settings.default_transfer_category,
            )
            tentative = self._state.snapshot()
            self._post(tentative, debit)

            request = ConfirmationRequest(
                operation="transfer_external",
                amount=value,
                account_ids=[source.id],
                description=f"Send {self._money(value)} to {recipient.name}",
            )
            result = await self._confirm_and_commit(
                tentative, request, "Transfer", (ACCOUNTS, TRANSACTIONS), [debit.id],
            )
            if result.success:
                await self._audit.log_transfer(
                    source.id, recipient.account_number, str(value), result.transaction_ids,
                )
            return result

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def record_transaction(
        self,
        account_id: str,
        amount: Any,
        type: Union[TransactionType, str],
        merchant: str,
        category: str,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
        when: Optional[Union[datetime, date]] = None,
    ) -> OperationResult:
        """
        Record a manual entry, possibly backdated.

        A bare date records a transaction without a timestamp, which sorts
        at midnight UTC of that day. No sufficiency check: a manual debit
        may take an account negative.
        """
        async with self._lock:
            account = self._state.account(account_id)
            validation, value = self._validator.validate_entry(account, amount, merchant, category)
            try:
                direction = TransactionType(type)
            except ValueError:
                direction = None
                validation.issues.append(ValidationIssue(
                    field="type",
                    issue_type="invalid_value",
                    message="Type must be 'credit' or 'debit'",
                ))
            if not validation.is_valid:
                return await self._reject("record_transaction", validation)

            extra: dict[str, Any] = {}
            if notes and notes.strip():
                extra["notes"] = notes.strip()
            if clean_tags(tags):
                extra["tags"] = clean_tags(tags)

            transaction_id = self._new_id("txn", account_id)
            if isinstance(when, date) and not isinstance(when, datetime):
                transaction = Transaction(
                    id=transaction_id,
                    date=when,
                    merchant=merchant.strip(),
                    category=category.strip(),
                    amount=value,
                    type=direction,
                    account_id=account_id,
                    **extra,
                )
            else:
                transaction = self._transaction(
                    transaction_id,
                    account_id,
                    value,
                    direction,
                    merchant.strip(),
                    category.strip(),
                    when=when,
                    **extra,
                )

            tentative = self._state.snapshot()
            self._post(tentative, transaction)
            result = await self._commit(
                tentative, (ACCOUNTS, TRANSACTIONS), [transaction.id],
            )
            await self._audit.log_transaction_recorded(
                transaction.id, account_id, str(value), direction.value,
            )
            return result

    async def update_transaction(
        self,
        transaction_id: str,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> OperationResult:
        """
        Edit the notes and/or tags of a transaction.

        None leaves a field unchanged. An empty string clears the notes and
        an empty list clears the tags. Nothing else about a transaction can
        be edited.
        """
        async with self._lock:
            if self._state.transaction(transaction_id) is None:
                return await self._reject(
                    "update_transaction",
                    _not_found("transaction_id", "Transaction not found"),
                )

            update: dict[str, Any] = {}
            if notes is not None:
                update["notes"] = notes.strip() or None
            if tags is not None:
                update["tags"] = clean_tags(tags) or None
            if not update:
                return OperationResult.ok([transaction_id])

            tentative = self._state.snapshot()
            tentative.transactions = [
                t.model_copy(update=update) if t.id == transaction_id else t
                for t in tentative.transactions
            ]
            result = await self._commit(tentative, (TRANSACTIONS,), [transaction_id])
            await self._audit.log_transaction_updated(transaction_id, sorted(update))
            return result

    async def set_transactions(self, transactions: list[Transaction]) -> OperationResult:
        """
        Replace the transaction collection wholesale (imports, restores).

        Account anchors are left as they are; running balances are
        recomputed against them.
        """
        async with self._lock:
            tentative = self._state.snapshot()
            tentative.transactions = [t.model_copy() for t in transactions]
            return await self._commit(tentative, (TRANSACTIONS,))

    async def set_accounts(self, accounts: list[Account]) -> OperationResult:
        """Replace the account collection wholesale and recompute against it."""
        async with self._lock:
            tentative = self._state.snapshot()
            tentative.accounts = [a.model_copy() for a in accounts]
            return await self._commit(tentative, (ACCOUNTS, TRANSACTIONS))

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def add_account(
        self,
        name: str,
        type: Union[AccountType, str] = AccountType.CHECKING,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        account_number: Optional[str] = None,
        description: Optional[str] = None,
    ) -> OperationResult:
        """Open a new account with a zero balance."""
        async with self._lock:
            validation = self._validator.validate_account_form(name, self._state.accounts)
            if not validation.is_valid:
                return await self._reject("add_account", validation)

            try:
                account = Account(
                    id=self._new_id("acc"),
                    name=name.strip(),
                    type=type,
                    color=color,
                    icon=icon,
                    account_number=account_number,
                    description=description,
                    created_at=self._clock.now(),
                )
            except ValidationError as e:
                return await self._reject("add_account", _issues_from(e))

            tentative = self._state.snapshot()
            tentative.accounts.append(account)
            result = await self._commit(tentative, (ACCOUNTS,), entity_id=account.id)
            await self._audit.log_account_event(
                AuditEventType.ACCOUNT_CREATED, account.id, account.name,
            )
            return result

    async def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        type: Optional[Union[AccountType, str]] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        account_number: Optional[str] = None,
        description: Optional[str] = None,
    ) -> OperationResult:
        """
        Edit account metadata. None leaves a field unchanged.

        IMPORTANT: the balance is not a parameter. It only ever moves
        through transactions.
        """
        async with self._lock:
            account = self._state.account(account_id)
            if account is None:
                return await self._reject(
                    "update_account", _not_found("account_id", "Account not found"),
                )
            if name is not None:
                validation = self._validator.validate_account_form(
                    name, self._state.accounts, exclude_id=account_id,
                )
                if not validation.is_valid:
                    return await self._reject("update_account", validation)

            changes = {
                "name": name.strip() if name is not None else None,
                "type": type,
                "color": color,
                "icon": icon,
                "account_number": account_number,
                "description": description,
            }
            changes = {k: v for k, v in changes.items() if v is not None}
            try:
                updated = Account.model_validate({**account.model_dump(), **changes})
            except ValidationError as e:
                return await self._reject("update_account", _issues_from(e))

            tentative = self._state.snapshot()
            tentative.accounts = [
                updated if a.id == account_id else a for a in tentative.accounts
            ]
            result = await self._commit(tentative, (ACCOUNTS,), entity_id=account_id)
            await self._audit.log_account_event(
                AuditEventType.ACCOUNT_UPDATED, account_id, updated.name,
            )
            return result

    async def archive_account(self, account_id: str) -> OperationResult:
        """Hide an account from pickers and totals, keeping its history."""
        return await self._set_archived(account_id, True)

    async def unarchive_account(self, account_id: str) -> OperationResult:
        return await self._set_archived(account_id, False)

    async def _set_archived(self, account_id: str, archived: bool) -> OperationResult:
        operation = "archive_account" if archived else "unarchive_account"
        async with self._lock:
            account = self._state.account(account_id)
            if account is None:
                return await self._reject(
                    operation, _not_found("account_id", "Account not found"),
                )

            tentative = self._state.snapshot()
            tentative.accounts = [
                a.model_copy(update={"is_archived": archived}) if a.id == account_id else a
                for a in tentative.accounts
            ]
            result = await self._commit(tentative, (ACCOUNTS,), entity_id=account_id)
            event = (
                AuditEventType.ACCOUNT_ARCHIVED if archived
                else AuditEventType.ACCOUNT_UNARCHIVED
            )
            await self._audit.log_account_event(event, account_id, account.name)
            return result

    async def delete_account(self, account_id: str) -> OperationResult:
        """
        Permanently remove an account.

        CRITICAL: refused for any account with transactions, linked goals
        or a non-zero balance. Deleting those would orphan history or make
        money disappear; archiving is the way to retire them.
        """
        async with self._lock:
            account = self._state.account(account_id)
            if account is None:
                return await self._reject(
                    "delete_account", _not_found("account_id", "Account not found"),
                )
            validation = self._validator.validate_account_deletion(
                account, self._state.transactions, self._state.goals,
            )
            if not validation.is_valid:
                return await self._reject("delete_account", validation, ErrorKind.INTEGRITY)

            tentative = self._state.snapshot()
            tentative.accounts = [a for a in tentative.accounts if a.id != account_id]
            result = await self._commit(tentative, (ACCOUNTS,), entity_id=account_id)
            await self._audit.log_account_event(
                AuditEventType.ACCOUNT_DELETED, account_id, account.name,
            )
            return result

    # =========================================================================
    # GOALS
    # =========================================================================

    async def add_goal(
        self,
        title: str,
        target_amount: Any,
        target_date: date,
        account_id: str,
        description: Optional[str] = None,
    ) -> OperationResult:
        """Create a savings goal linked to an active account."""
        async with self._lock:
            account = self._state.account(account_id)
            validation, target = self._validator.validate_goal_form(
                title, target_amount, target_date, account, self._clock.today(),
            )
            if not validation.is_valid:
                return await self._reject("add_goal", validation)

            goal = Goal(
                id=self._new_id("goal"),
                title=title.strip(),
                target_amount=target,
                target_date=target_date,
                account_id=account_id,
                description=(description or "").strip() or None,
                created_at=self._clock.now(),
            )
            tentative = self._state.snapshot()
            tentative.goals.append(goal)
            result = await self._commit(tentative, (GOALS,), entity_id=goal.id)
            await self._audit.log_goal_event(
                AuditEventType.GOAL_CREATED, goal.id, goal.title, str(target),
            )
            return result

    async def allocate_to_goal(self, goal_id: str, amount: Any) -> OperationResult:
        """
        Set money aside for a goal.

        The linked account's balance drops and the goal's allocation rises
        by the same amount, recorded as one debit.
        """
        async with self._lock:
            goal = self._state.goal(goal_id)
            account = self._state.account(goal.account_id) if goal else None
            validation, value = self._validator.validate_allocation(goal, account, amount)
            if not validation.is_valid:
                return await self._reject("allocate_to_goal", validation)

            debit = self._transaction(
                self._new_id("goal", "allocate", goal_id),
                account.id,
                value,
                TransactionType.DEBIT,
                f"Goal: {goal.title}",
                self._settings.goal_category,
            )
            tentative = self._state.snapshot()
            self._post(tentative, debit)
            self._update_goal(
                tentative, goal_id, allocated_amount=to_money(goal.allocated_amount + value),
            )
            result = await self._commit(
                tentative, (ACCOUNTS, TRANSACTIONS, GOALS), [debit.id], goal_id,
            )
            await self._audit.log_goal_event(
                AuditEventType.GOAL_ALLOCATED, goal_id, goal.title, str(value),
            )
            return result

    async def withdraw_from_goal(self, goal_id: str, amount: Any) -> OperationResult:
        """
        Return allocated money to the linked account.

        HARD GATE: refused before the goal's target date, whatever the
        amount. Withdrawing below target un-completes the goal but keeps
        its completed_at stamp.
        """
        async with self._lock:
            goal = self._state.goal(goal_id)
            account = self._state.account(goal.account_id) if goal else None
            validation, value = self._validator.validate_withdrawal(
                goal, account, amount, self._clock.today(),
            )
            if not validation.is_valid:
                return await self._reject("withdraw_from_goal", validation)

            credit = self._transaction(
                self._new_id("goal", "withdraw", goal_id),
                account.id,
                value,
                TransactionType.CREDIT,
                f"Goal withdrawal: {goal.title}",
                self._settings.goal_category,
            )
            tentative = self._state.snapshot()
            self._post(tentative, credit)
            self._update_goal(
                tentative, goal_id, allocated_amount=to_money(goal.allocated_amount - value),
            )
            result = await self._commit(
                tentative, (ACCOUNTS, TRANSACTIONS, GOALS), [credit.id], goal_id,
            )
            await self._audit.log_goal_event(
                AuditEventType.GOAL_WITHDRAWN, goal_id, goal.title, str(value),
            )
            return result

    async def delete_goal(self, goal_id: str) -> OperationResult:
        """
        Remove a goal, returning any allocated money to its account.

        The return is recorded as a credit "Goal closed: {title}" so the
        account's balance still equals its base plus its transactions.
        """
        async with self._lock:
            goal = self._state.goal(goal_id)
            if goal is None:
                return await self._reject(
                    "delete_goal", _not_found("goal_id", "Goal not found"),
                )
            account = self._state.account(goal.account_id)
            if account is None and goal.allocated_amount > 0:
                return await self._reject(
                    "delete_goal", _not_found("account_id", "Linked account not found"),
                )

            tentative = self._state.snapshot()
            transaction_ids = []
            if goal.allocated_amount > 0:
                credit = self._transaction(
                    self._new_id("goal", "close", goal_id),
                    account.id,
                    goal.allocated_amount,
                    TransactionType.CREDIT,
                    f"Goal closed: {goal.title}",
                    self._settings.goal_category,
                )
                self._post(tentative, credit)
                transaction_ids.append(credit.id)
            tentative.goals = [g for g in tentative.goals if g.id != goal_id]

            result = await self._commit(
                tentative, (ACCOUNTS, TRANSACTIONS, GOALS), transaction_ids, goal_id,
            )
            await self._audit.log_goal_event(
                AuditEventType.GOAL_DELETED, goal_id, goal.title, str(goal.allocated_amount),
            )
            return result

    async def refresh_goals(self) -> OperationResult:
        """
        Re-sync goal completion against today and persist the result.

        Reads already re-sync; this also writes the new completed_at
        stamps and audits goals that just completed.
        """
        async with self._lock:
            tentative = self._state.snapshot()
            return await self._commit(tentative, (GOALS,))

    # =========================================================================
    # FILTERS & PRESETS
    # =========================================================================

    def set_filters(self, **changes: Any) -> Filters:
        """
        Merge changes into the current filters.

        Picking a single category clears the category list and picking a
        category list clears the single category.

        Raises:
            TypeError: For a name that is not a filter field
        """
        unknown = set(changes) - set(Filters.model_fields)
        if unknown:
            raise TypeError(f"Unknown filter field(s): {', '.join(sorted(unknown))}")

        current = self._filters.model_dump()
        if changes.get("category"):
            current["categories"] = []
        if changes.get("categories"):
            current["category"] = ""
        current.update(changes)
        self._filters = Filters.model_validate(current)
        return self._filters

    def clear_filters(self) -> Filters:
        self._filters = Filters()
        return self._filters

    async def save_filter_preset(
        self,
        name: str,
        filters: Optional[Filters] = None,
    ) -> OperationResult:
        """Save the given (or current) filters under a unique name."""
        async with self._lock:
            validation = self._validator.validate_preset_name(
                name, [p.name for p in self._presets],
            )
            if not validation.is_valid:
                return await self._reject("save_filter_preset", validation)

            stored = (filters or self._filters).model_dump(
                mode="json", by_alias=True, exclude_defaults=True,
            )
            preset = FilterPreset(id=self._new_id("preset"), name=name.strip(), filters=stored)
            self._presets = [*self._presets, preset]
            error = await self._persist(FILTER_PRESETS)
            await self._audit.log_preset_event(
                AuditEventType.PRESET_SAVED, preset.id, preset.name,
            )

        result = OperationResult.ok(entity_id=preset.id)
        result.persistence_error = error
        return result

    async def delete_filter_preset(self, preset_id: str) -> OperationResult:
        async with self._lock:
            preset = next((p for p in self._presets if p.id == preset_id), None)
            if preset is None:
                return await self._reject(
                    "delete_filter_preset",
                    _not_found("preset_id", "Filter preset not found"),
                )
            self._presets = [p for p in self._presets if p.id != preset_id]
            error = await self._persist(FILTER_PRESETS)
            await self._audit.log_preset_event(
                AuditEventType.PRESET_DELETED, preset.id, preset.name,
            )

        result = OperationResult.ok(entity_id=preset_id)
        result.persistence_error = error
        return result

    def apply_filter_preset(self, preset_id: str) -> OperationResult:
        """Replace the current filters with a preset merged over the defaults."""
        preset = next((p for p in self._presets if p.id == preset_id), None)
        if preset is None:
            missing = _not_found("preset_id", "Filter preset not found")
            return OperationResult.fail(
                ErrorKind.NOT_FOUND, missing.first_error, issues=missing.issues,
            )
        self._filters = preset.to_filters()
        return OperationResult.ok(entity_id=preset_id)

    # =========================================================================
    # USER
    # =========================================================================

    async def update_user(self, **changes: Any) -> OperationResult:
        """
        Update profile fields and stamp updated_at.

        id, created_at and updated_at cannot be set by callers.
        """
        async with self._lock:
            if self._user is None:
                return await self._reject("update_user", _not_found("user", "User not found"))

            protected = PROTECTED_USER_FIELDS & set(changes)
            unknown = set(changes) - set(User.model_fields)
            if protected or unknown:
                return await self._reject("update_user", ValidationResult(issues=[
                    ValidationIssue(
                        field=field,
                        issue_type="read_only" if field in protected else "unknown_field",
                        message=f"Field '{field}' cannot be changed",
                    )
                    for field in sorted(protected | unknown)
                ]))

            if "email" in changes:
                validation = self._validator.validate_email(changes["email"])
                if not validation.is_valid:
                    return await self._reject("update_user", validation)

            try:
                updated = User.model_validate({
                    **self._user.model_dump(),
                    **changes,
                    "updated_at": self._clock.now(),
                })
            except ValidationError as e:
                return await self._reject("update_user", _issues_from(e))

            self._user = updated
            error = await self._persist(USER)
            await self._audit.log_user_updated(updated.id, sorted(changes))

        result = OperationResult.ok(entity_id=updated.id)
        result.persistence_error = error
        return result
