"""
Personal Banking Ledger

A flat-file personal banking ledger with savings and checking accounts,
per-account transaction histories and a CLI interface.
"""

__version__ = "0.1.0"

from .exceptions import (
    BankError,
    InsufficientFunds,
    InvalidAmount,
    AccountNotFound,
    DuplicateAccount,
    PersistenceFailure,
)
from .models import Account, AccountType, TransactionType, User
from .ledger import TransactionLedger
from .storage import FileStore
from .registry import AccountRegistry
from .directory import BankingDirectory
from .cli import main


def create_directory(data_dir: str = "bank_data", strict: bool = False) -> BankingDirectory:
    """
    Create a BankingDirectory backed by a flat-file store.

    Args:
        data_dir: Directory holding the ledger files
        strict: Raise PersistenceFailure on storage errors

    Returns:
        Bootstrapped BankingDirectory instance
    """
    return BankingDirectory(FileStore(data_dir, strict=strict))


__all__ = [
    "Account",
    "AccountType",
    "TransactionType",
    "User",
    "TransactionLedger",
    "FileStore",
    "AccountRegistry",
    "BankingDirectory",
    "BankError",
    "InsufficientFunds",
    "InvalidAmount",
    "AccountNotFound",
    "DuplicateAccount",
    "PersistenceFailure",
    "create_directory",
    "main",
]
