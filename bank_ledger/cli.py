"""
CLI interface for the bank ledger.

This module provides one-shot click commands for every ledger operation and
an interactive ``menu`` command.
"""

import logging
from decimal import Decimal
from typing import Optional

import click

from .directory import BankingDirectory
from .exceptions import BankError
from .models import AccountType, User, to_amount
from .storage import FileStore


class BankCLI:
    """CLI wrapper for ledger operations."""

    def __init__(self, data_dir: str = "bank_data", strict: bool = False):
        """Initialize CLI with a store and a bootstrapped directory."""
        self.store = FileStore(data_dir, strict=strict)
        self.directory = BankingDirectory(self.store)

    def format_currency(self, amount: Decimal) -> str:
        """Format currency for display."""
        return f"${amount:,.2f}"

    def parse_currency(self, amount_str: str) -> Decimal:
        """Parse currency input."""
        return to_amount(str(amount_str).replace('$', '').replace(',', ''))

    def login(self, email: str, password: str) -> Optional[User]:
        """Authenticate and report a failure on stderr."""
        user = self.directory.authenticate(email, password)
        if user is None:
            click.echo("❌ Invalid email or password", err=True)
        return user


@click.group()
@click.option('--data-dir', default='bank_data', envvar='BANK_LEDGER_DATA_DIR',
              help='Directory holding the ledger files')
@click.option('--strict-io/--lenient-io', default=False, envvar='BANK_LEDGER_STRICT_IO',
              help='Fail on storage errors instead of logging and continuing')
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level')
@click.pass_context
def cli(ctx, data_dir, strict_io, log_level):
    """Personal Banking Ledger CLI"""
    logging.basicConfig(level=log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj['cli'] = BankCLI(data_dir, strict=strict_io)


def _credentials(func):
    func = click.option('--password', prompt='Password', hide_input=True, help='Account password')(func)
    func = click.option('--email', prompt='Email', help='User email')(func)
    return func


@cli.command()
@click.option('--name', prompt='Full name', help='User full name')
@click.option('--email', prompt='Email', help='User email')
@click.option('--password', prompt='Password', hide_input=True,
              confirmation_prompt=True, help='Account password')
@click.pass_context
def register(ctx, name, email, password):
    """Register a new user."""
    bank_cli = ctx.obj['cli']
    _register(bank_cli, name, email, password)


@cli.command('list-users')
@click.pass_context
def list_users(ctx):
    """List registered users."""
    _list_users(ctx.obj['cli'])


@cli.command('open-account')
@_credentials
@click.option('--type', 'account_type', type=click.Choice(['savings', 'checking']),
              prompt='Account type', help='Type of account')
@click.option('--number', prompt='Account number', help='Account number')
@click.option('--interest-rate', default='0.00', help='Interest rate for savings accounts (%)')
@click.option('--overdraft-limit', default='0.00', help='Overdraft limit for checking accounts')
@click.pass_context
def open_account(ctx, email, password, account_type, number, interest_rate, overdraft_limit):
    """Open a savings or checking account."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is None:
        return

    acc_type = AccountType.CHECKING if account_type == 'checking' else AccountType.SAVINGS
    parameter = overdraft_limit if acc_type is AccountType.CHECKING else interest_rate
    _open_account(bank_cli, user, acc_type, number, parameter)


@cli.command()
@_credentials
@click.pass_context
def accounts(ctx, email, password):
    """Show a user's accounts."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is not None:
        _show_accounts(bank_cli, user)


@cli.command()
@_credentials
@click.option('--number', prompt='Account number', help='Account number')
@click.pass_context
def history(ctx, email, password, number):
    """Show the transaction history of an account."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is not None:
        _show_history(bank_cli, user, number)


@cli.command()
@_credentials
@click.option('--number', prompt='Account number', help='Account number')
@click.option('--amount', prompt='Deposit amount', help='Amount to deposit')
@click.pass_context
def deposit(ctx, email, password, number, amount):
    """Deposit money to an account."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is not None:
        _deposit(bank_cli, user, number, amount)


@cli.command()
@_credentials
@click.option('--number', prompt='Account number', help='Account number')
@click.option('--amount', prompt='Withdrawal amount', help='Amount to withdraw')
@click.pass_context
def withdraw(ctx, email, password, number, amount):
    """Withdraw money from an account."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is not None:
        _withdraw(bank_cli, user, number, amount)


@cli.command()
@_credentials
@click.option('--from-number', prompt='From account number', help='Source account number')
@click.option('--to-number', prompt='To account number', help='Destination account number')
@click.option('--amount', prompt='Transfer amount', help='Amount to transfer')
@click.pass_context
def transfer(ctx, email, password, from_number, to_number, amount):
    """Transfer money between accounts."""
    bank_cli = ctx.obj['cli']
    user = bank_cli.login(email, password)
    if user is not None:
        _transfer(bank_cli, user, from_number, to_number, amount)


@cli.command()
@click.pass_context
def menu(ctx):
    """Run the interactive menu."""
    bank_cli = ctx.obj['cli']

    while True:
        click.echo("\n🏦 Main Menu")
        click.echo("1. Register")
        click.echo("2. Login")
        click.echo("3. List users")
        click.echo("4. Exit")
        choice = click.prompt("Choose an option", type=click.IntRange(1, 4))

        if choice == 1:
            _register(bank_cli,
                      click.prompt("Full name"),
                      click.prompt("Email"),
                      click.prompt("Password", hide_input=True))
        elif choice == 2:
            user = bank_cli.login(click.prompt("Email"),
                                  click.prompt("Password", hide_input=True))
            if user is not None:
                click.echo(f"✅ Welcome, {user.name}!")
                _user_menu(bank_cli, user)
        elif choice == 3:
            _list_users(bank_cli)
        else:
            click.echo("Goodbye!")
            return


def _user_menu(bank_cli: BankCLI, user: User):
    while True:
        click.echo(f"\n👤 {user.name}")
        click.echo("1. Create savings account")
        click.echo("2. Create checking account")
        click.echo("3. View accounts")
        click.echo("4. View transaction history")
        click.echo("5. Deposit")
        click.echo("6. Withdraw")
        click.echo("7. Transfer")
        click.echo("8. Return to main menu")
        choice = click.prompt("Choose an option", type=click.IntRange(1, 8))

        if choice == 1:
            _open_account(bank_cli, user, AccountType.SAVINGS,
                          click.prompt("Account number"),
                          click.prompt("Interest rate (%)", default="0.00"))
        elif choice == 2:
            _open_account(bank_cli, user, AccountType.CHECKING,
                          click.prompt("Account number"),
                          click.prompt("Overdraft limit", default="0.00"))
        elif choice == 3:
            _show_accounts(bank_cli, user)
        elif choice == 4:
            _show_history(bank_cli, user, click.prompt("Account number"))
        elif choice == 5:
            _deposit(bank_cli, user, click.prompt("Account number"), click.prompt("Amount"))
        elif choice == 6:
            _withdraw(bank_cli, user, click.prompt("Account number"), click.prompt("Amount"))
        elif choice == 7:
            _transfer(bank_cli, user,
                      click.prompt("From account number"),
                      click.prompt("To account number"),
                      click.prompt("Amount"))
        else:
            return


def _register(bank_cli: BankCLI, name: str, email: str, password: str):
    try:
        if bank_cli.directory.register(name, email, password):
            click.echo(f"✅ User {email} registered successfully!")
        elif bank_cli.directory.get_user(email.strip()) is not None:
            click.echo(f"❌ A user with email {email} already exists", err=True)
        else:
            click.echo(f"❌ User {email} could not be saved", err=True)
    except (BankError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


def _list_users(bank_cli: BankCLI):
    users = bank_cli.directory.list_users()
    if not users:
        click.echo("No users registered")
        return

    click.echo(f"\n{'Name':<25} {'Email':<30} {'Accounts'}")
    click.echo(f"{'-'*65}")
    for user in users:
        click.echo(f"{user.name:<25} {user.email:<30} {len(user.accounts)}")


def _open_account(bank_cli: BankCLI, user: User, account_type: AccountType,
                  number: str, parameter: str):
    try:
        account = bank_cli.directory.open_account(
            user, account_type, number, bank_cli.parse_currency(parameter))
        click.echo("✅ Account created successfully!")
        click.echo(account.describe())
    except (BankError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


def _show_accounts(bank_cli: BankCLI, user: User):
    owned = user.accounts.find_accounts()
    if not owned:
        click.echo("No accounts yet")
        return

    click.echo(f"\n📊 Accounts of {user.name}")
    click.echo(f"{'='*60}")
    for account in owned:
        click.echo(account.describe())
    click.echo(f"Total Balance: {bank_cli.format_currency(user.accounts.total_balance())}")


def _show_history(bank_cli: BankCLI, user: User, number: str):
    account = user.accounts.get_account(number)
    if account is None:
        click.echo("❌ Account not found", err=True)
        return

    click.echo(f"\n📋 Transaction History for {account.account_number}")
    if not len(account.ledger):
        click.echo("No transactions yet")
        return
    for index, entry in enumerate(account.ledger, start=1):
        click.echo(f"{index:>4}. {entry}")


def _deposit(bank_cli: BankCLI, user: User, number: str, amount: str):
    try:
        deposit_amount = bank_cli.parse_currency(amount)
        recorded = bank_cli.directory.deposit(user, number, deposit_amount)
        click.echo("✅ Deposit successful!")
        click.echo(f"New Balance: {bank_cli.format_currency(user.accounts.get_account(number).balance)}")
        if not recorded:
            click.echo("⚠️ Deposit applied but not fully saved", err=True)
    except (BankError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


def _withdraw(bank_cli: BankCLI, user: User, number: str, amount: str):
    try:
        withdraw_amount = bank_cli.parse_currency(amount)
        recorded = bank_cli.directory.withdraw(user, number, withdraw_amount)
        click.echo("✅ Withdrawal successful!")
        click.echo(f"New Balance: {bank_cli.format_currency(user.accounts.get_account(number).balance)}")
        if not recorded:
            click.echo("⚠️ Withdrawal applied but not fully saved", err=True)
    except (BankError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


def _transfer(bank_cli: BankCLI, user: User, from_number: str, to_number: str, amount: str):
    try:
        transfer_amount = bank_cli.parse_currency(amount)
        recorded = bank_cli.directory.transfer(user, from_number, to_number, transfer_amount)
        source = user.accounts.get_account(from_number)
        click.echo("✅ Transfer successful!")
        click.echo(f"Amount: {bank_cli.format_currency(transfer_amount)}")
        click.echo(f"Account {from_number} Balance: {bank_cli.format_currency(source.balance)}")
        if not recorded:
            click.echo("⚠️ Transfer applied but not fully saved", err=True)
    except (BankError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
