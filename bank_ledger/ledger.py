"""
Per-account transaction history.

Entries are plain description strings kept in append order. When a store is
attached every entry is written through to it immediately.
"""

import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from .storage import FileStore


logger = logging.getLogger(__name__)


class TransactionLedger:
    """Append-only list of ledger entries for one account."""

    def __init__(self, account_number: str, store: Optional["FileStore"] = None):
        self.account_number = account_number
        self.store = store
        self._entries: List[str] = []

    @property
    def entries(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def append(self, entry: str) -> bool:
        """
        Record an entry.

        The in-memory history is updated before the write, so a failed write
        still leaves the entry visible for the rest of the session.

        Returns:
            True if the entry reached the store (or there is no store)
        """
        self._entries.append(entry)
        if self.store is None:
            return True

        persisted = self.store.append_transaction(self.account_number, entry)
        if not persisted:
            logger.warning(f"Ledger entry for account {self.account_number} kept in memory only")
        return persisted

    def load(self) -> int:
        """Replace in-memory entries with the persisted history."""
        if self.store is None:
            return len(self._entries)

        self._entries = list(self.store.read_transactions(self.account_number))
        logger.debug(f"Loaded {len(self._entries)} entries for account {self.account_number}")
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
