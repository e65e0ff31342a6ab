"""
User directory for the bank ledger.

This module contains the entry point used by the CLI: registration, login,
account opening and the balance operations that need to flush more than one
user's accounts.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from .exceptions import AccountNotFound, DuplicateAccount, PersistenceFailure
from .models import Account, AccountType, User
from .registry import AccountRegistry
from .storage import DELIMITER, PATH_SEPARATORS, FileStore


logger = logging.getLogger(__name__)


def _check_storable(label: str, value: str) -> None:
    if not value:
        raise ValueError(f"{label} cannot be empty")
    if DELIMITER in value or "\n" in value or "\r" in value:
        raise ValueError(f"{label} cannot contain '{DELIMITER}' or line breaks")


def _validate_field(label: str, value: str, file_name: bool = False) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} cannot be empty")
    _check_storable(label, value)
    # Emails and account numbers are part of data file names.
    if file_name and any(sep in value for sep in PATH_SEPARATORS):
        raise ValueError(f"{label} cannot contain path separators")
    return value.strip()


class BankingDirectory:
    """Maps email addresses to users and their account registries."""

    def __init__(self, store: FileStore):
        """Initialize the directory and load all persisted users."""
        self.store = store
        self._users: Dict[str, User] = {}
        self.bootstrap()

    def bootstrap(self) -> int:
        """
        Load every credential record and each user's accounts.

        Returns:
            Number of users loaded
        """
        self._users = {}
        for name, email, password in self.store.read_users():
            if email in self._users:
                logger.warning(f"Ignoring repeated user record for {email}")
                continue
            self._users[email] = self._make_user(name, email, password)
            self._users[email].accounts.load()

        logger.info(f"Loaded {len(self._users)} users from {self.store.data_dir}")
        return len(self._users)

    def register(self, name: str, email: str, password: str) -> bool:
        """
        Register a new user.

        Returns:
            True once the user is registered and saved. False if the email
            is already registered or the credential record could not be
            written; in both cases no user is added.
        """
        name = _validate_field("Name", name)
        email = _validate_field("Email", email, file_name=True)
        _check_storable("Password", password)

        if email in self._users:
            logger.warning(f"Registration rejected, {email} already exists")
            return False

        if not self.store.append_user(name, email, password):
            logger.warning(f"Registration of {email} not saved")
            return False

        self._users[email] = self._make_user(name, email, password)
        logger.info(f"Registered user {email}")
        return True

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Get the user whose email and password both match."""
        user = self._users.get(email)
        if user is None or not user.check_password(password):
            logger.warning(f"Authentication failed for {email}")
            return None
        return user

    def list_users(self) -> List[User]:
        """Get all users in registration order."""
        return list(self._users.values())

    def get_user(self, email: str) -> Optional[User]:
        return self._users.get(email)

    def find_account(self, account_number: str) -> Optional[Account]:
        """Find an account by number across all users."""
        for user in self._users.values():
            account = user.accounts.get_account(account_number)
            if account is not None:
                return account
        return None

    def open_account(self, user: User, account_type: AccountType, account_number: str,
                     parameter=Decimal('0.00')) -> Account:
        """
        Open a new account for a user.

        Raises:
            DuplicateAccount: the number is already used by any user
        """
        account_number = _validate_field("Account number", account_number, file_name=True)
        if self.find_account(account_number) is not None:
            raise DuplicateAccount(f"Account number {account_number} is already in use")
        return user.accounts.open_account(account_type, account_number, parameter)

    def deposit(self, user: User, account_number: str, amount) -> bool:
        return user.accounts.deposit(account_number, amount)

    def withdraw(self, user: User, account_number: str, amount) -> bool:
        return user.accounts.withdraw(account_number, amount)

    def transfer(self, user: User, source_number: str, target_number: str, amount) -> bool:
        """
        Transfer from one of the user's accounts to any account.

        Both owners' account files are rewritten after the transfer, also
        when a ledger write raised after the balances had moved.
        """
        source = user.accounts.require_account(source_number)
        target = self.find_account(target_number)
        if target is None:
            raise AccountNotFound(f"Destination account {target_number} not found")

        registries = [user.accounts]
        target_owner = self._users.get(target.owner_email)
        if target_owner is not None and target_owner is not user:
            registries.append(target_owner.accounts)

        before = source.balance
        saved = True
        try:
            recorded = source.transfer(target, amount)
        finally:
            if source.balance != before:
                saved = self._save_all(registries)
        return recorded and saved

    def _save_all(self, registries: List[AccountRegistry]) -> bool:
        """Save every registry, raising the first strict failure only after all were tried."""
        saved = True
        failure = None
        for registry in registries:
            try:
                saved = registry.save() and saved
            except PersistenceFailure as e:
                saved = False
                failure = failure or e
        if failure is not None:
            raise failure
        return saved

    def _make_user(self, name: str, email: str, password: str) -> User:
        user = User(name=name, email=email, password=password)
        user.accounts = AccountRegistry(email, self.store)
        return user
