"""
Tests for the directory module.

This module contains tests for the BankingDirectory class: registration,
authentication, account opening, cross-user transfers and bootstrapping.
"""

import logging
import os
import shutil
import tempfile
from decimal import Decimal
from unittest.mock import patch

import pytest

from bank_ledger.directory import BankingDirectory
from bank_ledger.exceptions import (
    AccountNotFound, DuplicateAccount, InsufficientFunds, PersistenceFailure,
)
from bank_ledger.models import AccountType
from bank_ledger.storage import FileStore


class TestBankingDirectory:
    """Test BankingDirectory class."""

    @pytest.fixture
    def temp_data_dir(self):
        """Create a temporary data directory."""
        path = tempfile.mkdtemp()
        yield path
        shutil.rmtree(path, ignore_errors=True)

    @pytest.fixture
    def store(self, temp_data_dir):
        return FileStore(temp_data_dir)

    @pytest.fixture
    def directory(self, store):
        return BankingDirectory(store)

    @pytest.fixture
    def ann(self, directory):
        directory.register("Ann Lee", "ann@example.com", "pw1")
        return directory.get_user("ann@example.com")

    @pytest.fixture
    def bob(self, directory):
        directory.register("Bob Ray", "bob@example.com", "pw2")
        return directory.get_user("bob@example.com")

    def test_empty_directory(self, directory):
        assert directory.list_users() == []
        assert directory.bootstrap() == 0

    def test_register(self, directory, store):
        assert directory.register("Ann Lee", "ann@example.com", "pw1") is True

        user = directory.get_user("ann@example.com")
        assert user.name == "Ann Lee"
        assert user.accounts.owner_email == "ann@example.com"
        assert store.read_users() == [("Ann Lee", "ann@example.com", "pw1")]

    def test_register_duplicate_email(self, directory, store, ann, caplog):
        """A repeated email is rejected and nothing is written."""
        with caplog.at_level(logging.WARNING, logger="bank_ledger.directory"):
            assert directory.register("Someone Else", "ann@example.com", "other") is False

        assert store.read_users() == [("Ann Lee", "ann@example.com", "pw1")]
        assert directory.get_user("ann@example.com").name == "Ann Lee"
        assert "already exists" in caplog.text

    @pytest.mark.parametrize("name,email,password", [
        ("", "a@x.com", "pw"),
        ("   ", "a@x.com", "pw"),
        ("Ann", "", "pw"),
        ("Lee, Ann", "a@x.com", "pw"),
        ("Ann", "a@x.com", "p,w"),
        ("Ann", "a@x.com", ""),
        ("Ann\nLee", "a@x.com", "pw"),
        ("Ann", "a@x.com", "pw\r"),
        ("Ann", "a/b@x.com", "pw"),
        ("Ann", "..\\a@x.com", "pw"),
    ])
    def test_register_invalid_fields(self, directory, store, name, email, password):
        with pytest.raises(ValueError):
            directory.register(name, email, password)
        assert store.read_users() == []

    def test_authenticate(self, directory, ann):
        assert directory.authenticate("ann@example.com", "pw1") is ann

    def test_authenticate_wrong_password(self, directory, ann, caplog):
        with caplog.at_level(logging.WARNING, logger="bank_ledger.directory"):
            assert directory.authenticate("ann@example.com", "PW1") is None
        assert "Authentication failed" in caplog.text

    def test_authenticate_unknown_user(self, directory):
        assert directory.authenticate("ghost@example.com", "pw") is None

    def test_list_users_idempotent(self, directory, ann, bob):
        first = directory.list_users()
        second = directory.list_users()

        assert first == second
        assert [u.email for u in first] == ["ann@example.com", "bob@example.com"]

    def test_open_account(self, directory, ann):
        account = directory.open_account(ann, AccountType.SAVINGS, "S1", Decimal('2'))

        assert ann.accounts.get_account("S1") is account
        assert directory.find_account("S1") is account

    def test_open_account_number_in_use(self, directory, ann, bob):
        directory.open_account(ann, AccountType.SAVINGS, "S1")

        with pytest.raises(DuplicateAccount):
            directory.open_account(bob, AccountType.CHECKING, "S1", 10)
        with pytest.raises(DuplicateAccount):
            directory.open_account(ann, AccountType.CHECKING, "S1", 10)

        assert len(bob.accounts) == 0
        assert len(ann.accounts) == 1

    @pytest.mark.parametrize("number", ["", "A,1", "A\n1", "../S1", "A\\1"])
    def test_open_account_invalid_number(self, directory, ann, number):
        with pytest.raises(ValueError):
            directory.open_account(ann, AccountType.SAVINGS, number)

    def test_find_account_missing(self, directory, ann):
        assert directory.find_account("S1") is None

    def test_deposit_and_withdraw(self, directory, ann):
        directory.open_account(ann, AccountType.CHECKING, "C1", 50)

        assert directory.deposit(ann, "C1", 10) is True
        assert directory.withdraw(ann, "C1", 60) is True
        assert ann.accounts.get_account("C1").balance == Decimal('-50')

    def test_transfer_between_users(self, directory, store, ann, bob):
        """Transfer 100 from Ann's C1 (200) to Bob's S2."""
        source = directory.open_account(ann, AccountType.CHECKING, "C1")
        directory.deposit(ann, "C1", 200)
        target = directory.open_account(bob, AccountType.SAVINGS, "S2")

        assert directory.transfer(ann, "C1", "S2", 100) is True

        assert source.balance == Decimal('100')
        assert target.balance == Decimal('100')
        assert source.ledger.entries[-1] == "Transfer: 100.00 to S2"
        assert target.ledger.entries == ("Deposit: 100.00",)
        assert store.read_accounts("ann@example.com")[0][2] == "100.00"
        assert store.read_accounts("bob@example.com")[0][2] == "100.00"

    def test_transfer_between_own_accounts(self, directory, store, ann):
        directory.open_account(ann, AccountType.SAVINGS, "S1")
        directory.open_account(ann, AccountType.CHECKING, "C1")
        directory.deposit(ann, "S1", 30)

        assert directory.transfer(ann, "S1", "C1", 30) is True
        assert [r[2] for r in store.read_accounts("ann@example.com")] == ["0.00", "30.00"]

    def test_transfer_insufficient_funds_is_atomic(self, directory, store, ann, bob):
        directory.open_account(ann, AccountType.SAVINGS, "S1")
        directory.deposit(ann, "S1", 10)
        directory.open_account(bob, AccountType.SAVINGS, "S2")

        with pytest.raises(InsufficientFunds):
            directory.transfer(ann, "S1", "S2", 11)

        assert directory.find_account("S1").balance == Decimal('10')
        assert directory.find_account("S2").balance == Decimal('0')
        assert store.read_transactions("S1") == ["Deposit: 10.00"]
        assert store.read_transactions("S2") == []

    def test_transfer_from_account_not_owned(self, directory, ann, bob):
        directory.open_account(bob, AccountType.SAVINGS, "S2")
        directory.open_account(ann, AccountType.SAVINGS, "S1")

        with pytest.raises(AccountNotFound):
            directory.transfer(ann, "S2", "S1", 1)

    def test_transfer_to_missing_account(self, directory, ann):
        directory.open_account(ann, AccountType.SAVINGS, "S1")
        directory.deposit(ann, "S1", 5)

        with pytest.raises(AccountNotFound, match="Destination"):
            directory.transfer(ann, "S1", "NOPE", 1)
        assert directory.find_account("S1").balance == Decimal('5')

    def test_bootstrap_after_restart(self, directory, store, ann, bob):
        directory.open_account(ann, AccountType.CHECKING, "C1", 50)
        directory.open_account(bob, AccountType.SAVINGS, "S2", "1.25")
        directory.deposit(ann, "C1", 200)
        directory.transfer(ann, "C1", "S2", 75)

        restarted = BankingDirectory(store)

        assert [u.email for u in restarted.list_users()] == ["ann@example.com", "bob@example.com"]
        user = restarted.authenticate("bob@example.com", "pw2")
        savings = user.accounts.get_account("S2")
        assert savings.balance == Decimal('75')
        assert savings.interest_rate == Decimal('1.25')
        assert savings.ledger.entries == ("Deposit: 75.00",)
        checking = restarted.find_account("C1")
        assert checking.balance == Decimal('125')
        assert checking.ledger.entries == ("Deposit: 200.00", "Transfer: 75.00 to S2")

    def test_bootstrap_ignores_repeated_user_record(self, store, caplog):
        store.append_user("Ann", "ann@example.com", "first")
        store.append_user("Imposter", "ann@example.com", "second")

        with caplog.at_level(logging.WARNING, logger="bank_ledger.directory"):
            directory = BankingDirectory(store)

        assert len(directory.list_users()) == 1
        assert directory.authenticate("ann@example.com", "first") is not None
        assert "repeated user record" in caplog.text

    def test_register_not_saved_lenient(self, directory, store, temp_data_dir):
        """A credential record that cannot be written leaves no user behind."""
        with patch.object(store, 'append_user', return_value=False):
            assert directory.register("Ann Lee", "ann@example.com", "pw1") is False

        assert directory.get_user("ann@example.com") is None
        assert directory.list_users() == []

        assert directory.register("Ann Lee", "ann@example.com", "pw1") is True
        restarted = BankingDirectory(FileStore(temp_data_dir))
        assert restarted.authenticate("ann@example.com", "pw1") is not None

    def test_register_not_saved_strict(self, temp_data_dir):
        store = FileStore(temp_data_dir, strict=True)
        directory = BankingDirectory(store)
        os.mkdir(store.users_path)

        with pytest.raises(PersistenceFailure):
            directory.register("Ann Lee", "ann@example.com", "pw1")
        assert directory.get_user("ann@example.com") is None

        os.rmdir(store.users_path)
        assert directory.register("Ann Lee", "ann@example.com", "pw1") is True
        restarted = BankingDirectory(FileStore(temp_data_dir))
        assert [u.email for u in restarted.list_users()] == ["ann@example.com"]

    def test_strict_transfer_saves_balances_when_source_ledger_fails(self, temp_data_dir):
        """Balances on disk match the ledgers already written when the source entry fails."""
        store = FileStore(temp_data_dir, strict=True)
        directory = BankingDirectory(store)
        directory.register("Ann Lee", "ann@example.com", "pw1")
        directory.register("Bob Ray", "bob@example.com", "pw2")
        ann = directory.get_user("ann@example.com")
        bob = directory.get_user("bob@example.com")
        directory.open_account(ann, AccountType.CHECKING, "C1")
        directory.open_account(bob, AccountType.SAVINGS, "S2")
        directory.deposit(ann, "C1", 200)

        append_transaction = store.append_transaction

        def fail_for_source(account_number, description):
            if account_number == "C1":
                return store.report_failure("Error appending to C1", OSError("disk full"))
            return append_transaction(account_number, description)

        with patch.object(store, 'append_transaction', side_effect=fail_for_source):
            with pytest.raises(PersistenceFailure):
                directory.transfer(ann, "C1", "S2", 100)

        restarted = BankingDirectory(FileStore(temp_data_dir))
        checking = restarted.find_account("C1")
        savings = restarted.find_account("S2")
        assert checking.balance == Decimal('100')
        assert checking.ledger.entries == ("Deposit: 200.00",)
        assert savings.balance == Decimal('100')
        assert savings.ledger.entries == ("Deposit: 100.00",)

    def test_lenient_transfer_reports_unsaved_ledger(self, directory, store, ann, bob):
        directory.open_account(ann, AccountType.CHECKING, "C1")
        directory.open_account(bob, AccountType.SAVINGS, "S2")
        directory.deposit(ann, "C1", 50)

        with patch.object(store, 'append_transaction', return_value=False):
            assert directory.transfer(ann, "C1", "S2", 20) is False

        assert store.read_accounts("ann@example.com")[0][2] == "30.00"
        assert store.read_accounts("bob@example.com")[0][2] == "20.00"
