"""
Data models for the bank ledger.

This module contains the account and user structures and the per-variant
withdrawal policy.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .exceptions import InsufficientFunds, InvalidAmount
from .ledger import TransactionLedger

if TYPE_CHECKING:
    from .registry import AccountRegistry


ZERO = Decimal('0.00')


class AccountType(Enum):
    """Account variants. The value is the tag stored in account records."""
    SAVINGS = "Savings"
    CHECKING = "Checking"

    @classmethod
    def from_tag(cls, tag: str) -> "AccountType":
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"Unknown account type tag: {tag!r}")


class TransactionType(Enum):
    """Kinds of ledger entries."""
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    TRANSFER = "Transfer"


def to_amount(value) -> Decimal:
    """Convert user input to a finite, non-negative Decimal."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be a finite number, got {value!r}")
    if amount < 0:
        raise InvalidAmount(f"Amount cannot be negative: {amount}")
    return amount


def withdrawal_floor(account: "Account") -> Decimal:
    """Lowest balance the account may reach."""
    if account.account_type is AccountType.CHECKING:
        return -account.overdraft_limit
    return ZERO


def variant_label(account: "Account") -> str:
    """Display label for the variant parameter."""
    if account.account_type is AccountType.CHECKING:
        return f"Overdraft Limit: {account.overdraft_limit:.2f}"
    return f"Interest Rate: {account.interest_rate}%"


@dataclass
class Account:
    """A savings or checking account."""

    account_number: str
    owner_email: str
    account_type: AccountType = AccountType.SAVINGS
    balance: Decimal = ZERO
    interest_rate: Decimal = ZERO  # Informational, never applied
    overdraft_limit: Decimal = ZERO
    ledger: Optional[TransactionLedger] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        """Coerce numbers and attach an in-memory ledger if none was given."""
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))

        self.interest_rate = to_amount(self.interest_rate)
        self.overdraft_limit = to_amount(self.overdraft_limit)

        if self.ledger is None:
            self.ledger = TransactionLedger(self.account_number)

    @classmethod
    def savings(cls, account_number: str, owner_email: str, interest_rate=ZERO,
                ledger: Optional[TransactionLedger] = None) -> "Account":
        return cls(account_number=account_number, owner_email=owner_email,
                   account_type=AccountType.SAVINGS, interest_rate=interest_rate,
                   ledger=ledger)

    @classmethod
    def checking(cls, account_number: str, owner_email: str, overdraft_limit=ZERO,
                 ledger: Optional[TransactionLedger] = None) -> "Account":
        return cls(account_number=account_number, owner_email=owner_email,
                   account_type=AccountType.CHECKING, overdraft_limit=overdraft_limit,
                   ledger=ledger)

    @property
    def variant_parameter(self) -> Decimal:
        if self.account_type is AccountType.CHECKING:
            return self.overdraft_limit
        return self.interest_rate

    @property
    def available_balance(self) -> Decimal:
        return self.balance - withdrawal_floor(self)

    def can_withdraw(self, amount) -> bool:
        """Check if withdrawal is possible without going below the floor."""
        return to_amount(amount) <= self.available_balance

    def deposit(self, amount) -> bool:
        """
        Deposit money to the account.

        Returns:
            True if the ledger entry was persisted
        """
        amount = to_amount(amount)
        self.balance += amount
        return self.ledger.append(f"{TransactionType.DEPOSIT.value}: {amount:.2f}")

    def withdraw(self, amount) -> bool:
        """
        Withdraw money from the account.

        Raises:
            InsufficientFunds: balance would drop below the variant's floor
        """
        amount = to_amount(amount)
        self._debit(amount)
        return self.ledger.append(f"{TransactionType.WITHDRAW.value}: {amount:.2f}")

    def transfer(self, target: "Account", amount) -> bool:
        """
        Move money to another account.

        The source is debited before the target is credited, so a rejected
        debit leaves both accounts and both ledgers untouched. The target
        records its own deposit entry; the source records one transfer entry.
        """
        amount = to_amount(amount)
        if target is self:
            raise ValueError("Cannot transfer to the same account")

        self._debit(amount)
        target_recorded = target.deposit(amount)
        recorded = self.ledger.append(
            f"{TransactionType.TRANSFER.value}: {amount:.2f} to {target.account_number}"
        )
        return recorded and target_recorded

    def describe(self) -> str:
        return (f"{self.account_type.value} Account {self.account_number} | "
                f"Balance: {self.balance:.2f} | {variant_label(self)}")

    def _debit(self, amount: Decimal) -> None:
        if amount > self.available_balance:
            raise InsufficientFunds(self.account_number, amount, self.available_balance)
        self.balance -= amount


@dataclass
class User:
    """A registered user and the registry of accounts they own."""

    name: str
    email: str
    password: str = field(repr=False)
    accounts: Optional["AccountRegistry"] = field(default=None, repr=False, compare=False)

    def check_password(self, password: str) -> bool:
        return self.password == password
