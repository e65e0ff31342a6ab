"""
Flat-file store for the bank ledger.

This module handles all reads and writes against the data directory:

- ``users.txt``: ``name,email,password`` per line, append-only
- ``<email>_accounts.txt``: ``tag,number,balance,parameter`` per line,
  rewritten in full on every save
- ``<number>_transactions.txt``: one entry per line, append-only

Values are not escaped, so a value containing the delimiter or a newline
cannot be stored.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .exceptions import PersistenceFailure


DELIMITER = ","
USERS_FILE = "users.txt"
PATH_SEPARATORS = ("/", "\\")


class FileStore:
    """Manages the flat files backing users, accounts and ledgers."""

    def __init__(self, data_dir: str = "bank_data", strict: bool = False):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding all data files
            strict: Raise PersistenceFailure instead of logging and continuing
        """
        self.data_dir = Path(data_dir)
        self.strict = strict
        self.logger = logging.getLogger(__name__)
        self._init_directory()

    def _init_directory(self):
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.report_failure(f"Error creating data directory {self.data_dir}", e)

    def report_failure(self, message: str, error: Optional[Exception] = None) -> bool:
        """
        Log a persistence problem.

        Returns False so callers can ``return self.report_failure(...)``;
        raises PersistenceFailure instead when the store is strict.
        """
        detail = f"{message}: {error}" if error is not None else message
        self.logger.error(detail)
        if self.strict:
            raise PersistenceFailure(detail) from error
        return False

    @property
    def users_path(self) -> Path:
        return self.data_dir / USERS_FILE

    def accounts_path(self, email: str) -> Path:
        return self.data_dir / f"{email}_accounts.txt"

    def transactions_path(self, account_number: str) -> Path:
        return self.data_dir / f"{account_number}_transactions.txt"

    def append_user(self, name: str, email: str, password: str) -> bool:
        """Append a credential record."""
        return self._append_line(self.users_path, DELIMITER.join((name, email, password)))

    def read_users(self) -> List[Tuple[str, str, str]]:
        """Read all credential records in file order."""
        users = []
        for line_no, line in enumerate(self._read_lines(self.users_path), start=1):
            fields = line.split(DELIMITER)
            if len(fields) != 3:
                self.report_failure(f"Malformed user record at {self.users_path}:{line_no}")
                continue
            users.append((fields[0], fields[1], fields[2]))
        return users

    def write_accounts(self, email: str, records: Sequence[Sequence[str]]) -> bool:
        """Rewrite a user's account file with the given records."""
        path = self.accounts_path(email)
        try:
            with path.open("w", encoding="utf-8") as f:
                for record in records:
                    f.write(DELIMITER.join(record) + "\n")
            return True
        except OSError as e:
            return self.report_failure(f"Error writing accounts to {path}", e)

    def read_accounts(self, email: str) -> List[List[str]]:
        """Read a user's account records, split into fields."""
        return [line.split(DELIMITER) for line in self._read_lines(self.accounts_path(email))]

    def append_transaction(self, account_number: str, description: str) -> bool:
        """Append one ledger entry to an account's history file."""
        return self._append_line(self.transactions_path(account_number), description)

    def read_transactions(self, account_number: str) -> List[str]:
        """Read an account's ledger entries in append order."""
        return self._read_lines(self.transactions_path(account_number))

    def _append_line(self, path: Path, line: str) -> bool:
        try:
            with path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
            return True
        except OSError as e:
            return self.report_failure(f"Error appending to {path}", e)

    def _read_lines(self, path: Path) -> List[str]:
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                return [line.rstrip("\n") for line in f if line.strip()]
        except (OSError, UnicodeDecodeError) as e:
            self.report_failure(f"Error reading {path}", e)
            return []
