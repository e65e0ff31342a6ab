"""
Exceptions for the bank ledger.

Balance rule violations are raised to the caller; persistence problems are
only raised when the store runs in strict mode.
"""

from decimal import Decimal


class BankError(Exception):
    """Base class for all ledger errors."""


class InsufficientFunds(BankError):
    """Withdrawal or transfer would take the balance below the account floor."""

    def __init__(self, account_number: str, requested: Decimal, available: Decimal):
        self.account_number = account_number
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds in account {account_number}. "
            f"Requested: {requested:.2f}, Available: {available:.2f}"
        )


class InvalidAmount(BankError, ValueError):
    """Amount is negative, not a number, or infinite."""


class AccountNotFound(BankError, LookupError):
    """No account with the given number."""


class DuplicateAccount(BankError):
    """Account number is already in use."""


class PersistenceFailure(BankError):
    """Reading or writing the flat-file store failed."""
