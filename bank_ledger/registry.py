"""
Per-user account registry.

This module owns the set of accounts belonging to one user and their
round-trip through the store.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterator, List, Optional

from .exceptions import AccountNotFound
from .ledger import TransactionLedger
from .models import Account, AccountType
from .storage import FileStore


logger = logging.getLogger(__name__)


class AccountRegistry:
    """Accounts owned by a single user."""

    def __init__(self, owner_email: str, store: FileStore):
        """Initialize an empty registry for the given owner."""
        self.owner_email = owner_email
        self.store = store
        self._accounts: List[Account] = []

    def add_account(self, account: Account) -> None:
        """Add an account. Account numbers are not checked for uniqueness here."""
        self._accounts.append(account)

    def find_accounts(self) -> List[Account]:
        """Get all owned accounts in the order they were added."""
        return list(self._accounts)

    def get_account(self, account_number: str) -> Optional[Account]:
        """Get the first owned account with this number."""
        for account in self._accounts:
            if account.account_number == account_number:
                return account
        return None

    def require_account(self, account_number: str) -> Account:
        account = self.get_account(account_number)
        if account is None:
            raise AccountNotFound(f"Account {account_number} not found for {self.owner_email}")
        return account

    def open_account(self, account_type: AccountType, account_number: str,
                     parameter=Decimal('0.00')) -> Account:
        """Create a store-backed account, add it and save the registry."""
        ledger = TransactionLedger(account_number, self.store)
        if account_type is AccountType.CHECKING:
            account = Account.checking(account_number, self.owner_email, parameter, ledger)
        else:
            account = Account.savings(account_number, self.owner_email, parameter, ledger)

        self.add_account(account)
        self.save()
        logger.info(f"Opened {account_type.value} account {account_number} for {self.owner_email}")
        return account

    def deposit(self, account_number: str, amount) -> bool:
        """Deposit into an owned account and flush the registry."""
        account = self.require_account(account_number)
        return self._apply(account, account.deposit, amount)

    def withdraw(self, account_number: str, amount) -> bool:
        """Withdraw from an owned account and flush the registry."""
        account = self.require_account(account_number)
        return self._apply(account, account.withdraw, amount)

    def _apply(self, account: Account, operation, amount) -> bool:
        # A changed balance is flushed even when its ledger append raised.
        before = account.balance
        saved = True
        try:
            recorded = operation(amount)
        finally:
            if account.balance != before:
                saved = self.save()
        return saved and recorded

    def total_balance(self) -> Decimal:
        return sum((account.balance for account in self._accounts), Decimal('0.00'))

    def save(self) -> bool:
        """Rewrite the owner's account file."""
        records = [
            (account.account_type.value, account.account_number,
             str(account.balance), str(account.variant_parameter))
            for account in self._accounts
        ]
        return self.store.write_accounts(self.owner_email, records)

    def load(self) -> int:
        """
        Rebuild accounts from the store.

        Each record restores its variant and balance, then replays that
        account's ledger. Malformed records are reported and skipped.

        Returns:
            Number of accounts loaded
        """
        self._accounts = []
        for fields in self.store.read_accounts(self.owner_email):
            account = self._parse_record(fields)
            if account is None:
                continue
            account.ledger.load()
            self._accounts.append(account)

        logger.debug(f"Loaded {len(self._accounts)} accounts for {self.owner_email}")
        return len(self._accounts)

    def _parse_record(self, fields: List[str]) -> Optional[Account]:
        if len(fields) != 4:
            self.store.report_failure(f"Malformed account record for {self.owner_email}: {fields}")
            return None

        tag, account_number, balance, parameter = fields
        try:
            account_type = AccountType.from_tag(tag)
            restored_balance = Decimal(balance)
            if not restored_balance.is_finite():
                raise ValueError(f"Balance is not a finite number: {balance}")
            account = Account(
                account_number=account_number,
                owner_email=self.owner_email,
                account_type=account_type,
                balance=restored_balance,
                interest_rate=parameter if account_type is AccountType.SAVINGS else '0.00',
                overdraft_limit=parameter if account_type is AccountType.CHECKING else '0.00',
                ledger=TransactionLedger(account_number, self.store),
            )
        except (ValueError, InvalidOperation) as e:
            self.store.report_failure(f"Invalid account record for {self.owner_email}: {fields}", e)
            return None
        return account

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.find_accounts())
