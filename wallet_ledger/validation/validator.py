"""
Ledger Input Validation

DESIGN DECISION: Every mutation validates ALL of its inputs before any
state is touched. A validation failure is a normal, expected outcome and is
returned as a ValidationResult, never raised.

Validation runs in the same two layers for every money-moving operation:

LAYER 1 - AMOUNT SHAPE:
- Present and numeric
- Strictly positive
- At most 2 decimal places (cents are the smallest unit)

LAYER 2 - BUSINESS RULES:
- The funding source has enough money
- Source and destination differ
- Goal withdrawals wait for the goal's target date
- Accounts with history cannot be deleted

IMPORTANT: Validation NEVER silently fixes issues. 12.345 is rejected,
not rounded to 12.35.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from wallet_ledger.models.ledger import (
    Account,
    Goal,
    Transaction,
    ValidationIssue,
    ValidationResult,
)


CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "JPY": "¥"}

AmountInput = Any  # Decimal, str, int or float as typed by the user


def format_currency(amount: Decimal, currency_code: str = "USD") -> str:
    """Format an amount like the dashboard did: $1,234.56 / -$20.00."""
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper(), f"{currency_code.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def _issue(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message)


def decimal_places(raw: AmountInput) -> int:
    """Number of digits after the decimal point, exponent notation included."""
    amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    exponent = amount.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


class LedgerValidator:
    """
    Validates inputs to ledger mutations.

    Every method returns a ValidationResult. Amount-taking methods also
    return the parsed Decimal (None when the amount itself is invalid).
    """

    def __init__(self, currency_code: str = "USD"):
        self._currency_code = currency_code

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self._currency_code)

    # -------------------------------------------------------------------------
    # Layer 1: amount shape
    # -------------------------------------------------------------------------

    def check_amount(
        self,
        raw: AmountInput,
        field: str = "amount",
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Parse and shape-check a user-entered amount.

        Returns: (parsed_amount_or_None, issues)
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None, [_issue(field, "missing", "Amount is required")]

        if isinstance(raw, bool):
            return None, [_issue(field, "invalid_value", "Amount must be a positive number")]

        try:
            amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except InvalidOperation:
            return None, [_issue(field, "invalid_value", "Amount must be a positive number")]

        if not amount.is_finite() or amount <= 0:
            return None, [_issue(field, "invalid_value", "Amount must be a positive number")]

        if decimal_places(amount) > 2:
            return None, [_issue(
                field, "invalid_precision", "Amount can have maximum 2 decimal places",
            )]

        amount = amount.quantize(Decimal("0.01"))
        if amount <= 0:
            return None, [_issue(field, "invalid_value", "Amount must be a positive number")]

        return amount, []

    # -------------------------------------------------------------------------
    # Layer 2: per-operation rules
    # -------------------------------------------------------------------------

    def validate_funding(
        self,
        account: Optional[Account],
        raw_amount: AmountInput,
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """Fund wallet: existing, active account and a well-formed amount."""
        issues = []
        if account is None:
            issues.append(_issue("account_id", "not_found", "Account not found"))
        elif account.is_archived:
            issues.append(_issue("account_id", "archived", "Cannot fund an archived account"))

        amount, amount_issues = self.check_amount(raw_amount)
        issues.extend(amount_issues)
        return ValidationResult(issues=issues), amount

    def validate_transfer(
        self,
        from_account: Optional[Account],
        to_account: Optional[Account],
        raw_amount: AmountInput,
        external: bool = False,
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """
        Transfer: distinct accounts, active source, enough balance.

        For external transfers to_account is ignored.
        """
        issues = []

        if from_account is None:
            issues.append(_issue("from_account_id", "missing", "Please select a source account"))
        elif from_account.is_archived:
            issues.append(_issue(
                "from_account_id", "archived", "Cannot transfer from an archived account",
            ))

        if not external:
            if to_account is None:
                issues.append(_issue(
                    "to_account_id", "missing", "Please select a destination account",
                ))
            elif from_account is not None and to_account.id == from_account.id:
                issues.append(_issue(
                    "to_account_id", "same_account", "Cannot transfer to the same account",
                ))
            elif to_account.is_archived:
                issues.append(_issue(
                    "to_account_id", "archived", "Cannot transfer to an archived account",
                ))

        amount, amount_issues = self.check_amount(raw_amount)
        issues.extend(amount_issues)

        if amount is not None and from_account is not None and amount > from_account.balance:
            issues.append(_issue("amount", "insufficient_funds", "Insufficient balance"))

        return ValidationResult(issues=issues), amount

    def validate_allocation(
        self,
        goal: Optional[Goal],
        account: Optional[Account],
        raw_amount: AmountInput,
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """Allocate: the amount must fit in the linked account's balance."""
        if goal is None:
            return ValidationResult(issues=[_issue("goal_id", "not_found", "Goal not found")]), None
        if account is None:
            return ValidationResult(issues=[
                _issue("account_id", "not_found", "Linked account not found"),
            ]), None
        if account.is_archived:
            return ValidationResult(issues=[
                _issue("account_id", "archived", "Cannot allocate from an archived account"),
            ]), None

        amount, issues = self.check_amount(raw_amount)
        if amount is not None and amount > account.balance:
            issues.append(_issue(
                "amount",
                "insufficient_funds",
                f"Insufficient balance in {account.name}. "
                f"Available: {self._money(account.balance)}",
            ))
        return ValidationResult(issues=issues), amount

    def validate_withdrawal(
        self,
        goal: Optional[Goal],
        account: Optional[Account],
        raw_amount: AmountInput,
        today: date,
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """
        Withdraw: HARD date gate first, then the amount.

        Before the target date nothing can be withdrawn, whatever the
        amount or the allocation.
        """
        if goal is None:
            return ValidationResult(issues=[_issue("goal_id", "not_found", "Goal not found")]), None

        if today < goal.target_date:
            days = goal.days_until_target(today)
            return ValidationResult(issues=[_issue(
                "target_date",
                "too_early",
                f"Withdrawal is only allowed on or after "
                f"{goal.target_date:%B %d, %Y}. {days} day(s) remaining.",
            )]), None

        if account is None:
            return ValidationResult(issues=[
                _issue("account_id", "not_found", "Linked account not found"),
            ]), None

        amount, issues = self.check_amount(raw_amount)
        if amount is not None and amount > goal.allocated_amount:
            issues.append(_issue(
                "amount",
                "insufficient_funds",
                f"Cannot withdraw more than the allocated "
                f"{self._money(goal.allocated_amount)}",
            ))
        return ValidationResult(issues=issues), amount

    def validate_account_deletion(
        self,
        account: Account,
        transactions: list[Transaction],
        goals: list[Goal],
    ) -> ValidationResult:
        """
        Delete account: only for accounts with no history at all.

        Archiving is the path for anything with transactions, goals or money.
        """
        issues = []
        tx_count = sum(1 for t in transactions if t.account_id == account.id)
        goal_count = sum(1 for g in goals if g.account_id == account.id)

        if tx_count:
            issues.append(_issue(
                "account_id",
                "has_transactions",
                f"Cannot delete {account.name}: it has {tx_count} transaction(s). "
                "Archive it instead to keep its history.",
            ))
        if goal_count:
            issues.append(_issue(
                "account_id",
                "has_goals",
                f"Cannot delete {account.name}: it funds {goal_count} goal(s). "
                "Delete or move those goals first.",
            ))
        if account.balance != 0:
            issues.append(_issue(
                "account_id",
                "non_zero_balance",
                f"Cannot delete {account.name}: its balance is "
                f"{self._money(account.balance)}. Transfer the funds out first.",
            ))
        return ValidationResult(issues=issues)

    def validate_account_form(
        self,
        name: Optional[str],
        accounts: list[Account],
        exclude_id: Optional[str] = None,
    ) -> ValidationResult:
        """Account name: required, unique (case-insensitive) among active accounts."""
        issues = []
        cleaned = (name or "").strip()
        if not cleaned:
            issues.append(_issue("name", "missing", "Account name is required"))
        else:
            duplicate = any(
                a.name.strip().lower() == cleaned.lower()
                and not a.is_archived
                and a.id != exclude_id
                for a in accounts
            )
            if duplicate:
                issues.append(_issue(
                    "name", "duplicate", "An account with this name already exists",
                ))
        return ValidationResult(issues=issues)

    def validate_goal_form(
        self,
        title: Optional[str],
        raw_target: AmountInput,
        target_date: Optional[date],
        account: Optional[Account],
        today: date,
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """New goal: title, positive target, future date, active account."""
        issues = []
        if not (title or "").strip():
            issues.append(_issue("title", "missing", "Goal title is required"))

        target, target_issues = self.check_amount(raw_target, field="target_amount")
        if target_issues and target_issues[0].issue_type != "invalid_precision":
            target_issues = [_issue(
                "target_amount", "invalid_value", "Target amount must be greater than 0",
            )]
        issues.extend(target_issues)

        if target_date is None:
            issues.append(_issue("target_date", "missing", "Target date is required"))
        elif target_date <= today:
            issues.append(_issue(
                "target_date", "invalid_value", "Target date must be in the future",
            ))

        if account is None:
            issues.append(_issue("account_id", "missing", "Please select an account"))
        elif account.is_archived:
            issues.append(_issue(
                "account_id", "archived", "Cannot link a goal to an archived account",
            ))

        return ValidationResult(issues=issues), target

    def validate_entry(
        self,
        account: Optional[Account],
        raw_amount: AmountInput,
        merchant: Optional[str],
        category: Optional[str],
    ) -> tuple[ValidationResult, Optional[Decimal]]:
        """Manual transaction entry."""
        issues = []
        if account is None:
            issues.append(_issue("account_id", "not_found", "Account not found"))
        elif account.is_archived:
            issues.append(_issue(
                "account_id", "archived", "Cannot record transactions on an archived account",
            ))
        if not (merchant or "").strip():
            issues.append(_issue("merchant", "missing", "Merchant is required"))
        if not (category or "").strip():
            issues.append(_issue("category", "missing", "Category is required"))

        amount, amount_issues = self.check_amount(raw_amount)
        issues.extend(amount_issues)
        return ValidationResult(issues=issues), amount

    def validate_email(self, email: Optional[str]) -> ValidationResult:
        """Profile email: must at least look like one."""
        value = (email or "").strip()
        if not value or "@" not in value or value.startswith("@") or value.endswith("@"):
            return ValidationResult(issues=[
                _issue("email", "invalid_format", "Please enter a valid email address"),
            ])
        return ValidationResult()

    def validate_preset_name(self, name: Optional[str], existing: list[str]) -> ValidationResult:
        """Preset name: required and unique (case-insensitive)."""
        cleaned = (name or "").strip()
        if not cleaned:
            return ValidationResult(issues=[_issue("name", "missing", "Preset name is required")])
        if cleaned.lower() in {n.strip().lower() for n in existing}:
            return ValidationResult(issues=[
                _issue("name", "duplicate", "A preset with this name already exists"),
            ])
        return ValidationResult()

    def summarize(self, result: ValidationResult) -> str:
        """
        One user-facing message for a failed validation.

        The first error leads; further errors are appended so nothing is hidden.
        """
        errors = [i.message for i in result.issues if i.severity == "error"]
        if not errors:
            return "All checks passed."
        if len(errors) == 1:
            return errors[0]
        return errors[0] + " Also: " + "; ".join(errors[1:])
