# zkwallet/cli/main.py
"""
CLI for creating accounts, inspecting balances and UTXOs, and sending
zero-knowledge-authorized transfers.
"""

from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from zkwallet.config import WalletConfig
from zkwallet.core import errors
from zkwallet.core.codec import format_amount, parse_account, parse_amount, parse_identifier, parse_secret
from zkwallet.core.errors import InsufficientFunds, WalletError
from zkwallet.core.secret import Secret
from zkwallet.ledger.client import LedgerClient
from zkwallet.logs import setup_logging
from zkwallet.prover import create_prover
from zkwallet.prover.coordinator import ProofCoordinator
from zkwallet.tx.builder import TransactionBuilder
from zkwallet.tx.pipeline import TransferPipeline

app = typer.Typer(
    name="zkwallet",
    help="Wallet for a UTXO ledger with zero-knowledge authorized transfers",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

EXIT_CODES = {
    errors.INPUT: 2,
    errors.TRANSIENT: 3,
    errors.REJECTED: 4,
    errors.PROVER: 5,
}


def fail(err: WalletError) -> NoReturn:
    """Print a wallet error and exit with the code for its category."""
    console.print(f"[red]{err.kind}: {escape(str(err))}[/]")
    if isinstance(err, InsufficientFunds):
        console.print(f"  available: {format_amount(err.available)} ({err.available})")
        console.print(f"  requested: {format_amount(err.requested)} ({err.requested})")
    if err.stage:
        console.print(f"  [dim]failed while {err.stage}[/]")
    if isinstance(err, errors.NetworkError) and err.tx_hash:
        console.print(f"[yellow]Check the outcome with: zkwallet status {err.tx_hash}[/]")
    elif err.category == errors.TRANSIENT:
        console.print("[yellow]The ledger could not be reached; try again later.[/]")
    raise typer.Exit(EXIT_CODES.get(err.category, 1))


def get_config(ctx: typer.Context) -> WalletConfig:
    if isinstance(ctx.obj, WalletConfig):
        return ctx.obj
    return WalletConfig.load()


def make_client(config: WalletConfig) -> LedgerClient:
    return LedgerClient(config.api_url, timeout=config.rpc_timeout, max_retries=config.max_retries)


def make_coordinator(config: WalletConfig) -> ProofCoordinator:
    try:
        backend = create_prover(config.prover)
    except ValueError as e:
        fail(errors.ConfigError(f"prover: {e}"))
    return ProofCoordinator(backend, timeout=config.prover_timeout)


def make_pipeline(config: WalletConfig) -> TransferPipeline:
    builder = TransactionBuilder(fee=config.fee, allow_zero_amount=config.allow_zero_amount)
    return TransferPipeline(make_client(config), make_coordinator(config), builder)


@app.callback()
def main(
    ctx: typer.Context,
    api_url: Optional[str] = typer.Option(
        None, "--api-url", help="Ledger JSON-RPC endpoint (overrides API_HTTP_URL env var)",
    ),
    prover: Optional[str] = typer.Option(
        None, "--prover", help="Proving program, e.g. 'exec:/usr/local/bin/wallet-prover' (overrides WALLET_PROVER)",
    ),
    fee: Optional[str] = typer.Option(
        None, "--fee", help="Fee required by the ledger, 64 hex chars (overrides WALLET_FEE)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline progress to stderr"),
):
    """Manage zero-knowledge wallet accounts and transfers."""
    try:
        config = WalletConfig.load(
            api_url=api_url,
            prover=prover,
            fee=fee,
            log_level="INFO" if verbose else None,
        )
    except WalletError as e:
        fail(e)
    setup_logging(config.log_level)
    ctx.obj = config


@app.command()
def create(ctx: typer.Context):
    """Generate a new secret and derive its account."""
    config = get_config(ctx)
    coordinator = make_coordinator(config)

    console.print("Creating new wallet account...")
    with Secret.generate() as secret:
        try:
            account = coordinator.derive_account(secret)
        except WalletError as e:
            fail(e)
        console.print(f"Secret:  {secret.reveal_hex()}")
    console.print(f"Account: {account.hex()}")
    console.print("[yellow]The secret is not stored anywhere. Keep it safe; it cannot be recovered.[/]")


@app.command("get-balance")
def get_balance(
    ctx: typer.Context,
    account: str = typer.Option(..., "--account", help="Account, 64 hex chars"),
):
    """Show the balance of an account (sum of its unspent outputs)."""
    try:
        owner = parse_account(account)
        balance = make_client(get_config(ctx)).fetch_balance(owner)
    except WalletError as e:
        fail(e)

    console.print(f"Balance for {owner.hex()}:")
    console.print(f"  {format_amount(balance)} ({balance})")


@app.command("list-utxos")
def list_utxos(
    ctx: typer.Context,
    account: str = typer.Option(..., "--account", help="Account, 64 hex chars"),
):
    """List the unspent outputs owned by an account."""
    try:
        owner = parse_account(account)
        utxos = make_client(get_config(ctx)).fetch_utxos(owner)
    except WalletError as e:
        fail(e)

    if not utxos:
        console.print(f"[yellow]No UTXOs found for {owner.hex()}[/]")
        return

    table = Table(title=f"UTXOs of {owner.hex()[:16]}...")
    table.add_column("#")
    table.add_column("UTXO ID")
    table.add_column("Amount (hex)")
    table.add_column("Amount")

    for i, utxo in enumerate(utxos, start=1):
        table.add_row(str(i), utxo.id, format_amount(utxo.amount), str(utxo.amount))

    console.print(table)
    console.print(f"Total UTXOs found: {len(utxos)}")
    console.print(f"Total amount: {sum(u.amount for u in utxos)}")


@app.command()
def transfer(
    ctx: typer.Context,
    sender: str = typer.Option(..., "--from", help="Sending account, 64 hex chars"),
    recipient: str = typer.Option(..., "--to", help="Receiving account, 64 hex chars"),
    amount: str = typer.Option(..., "--amount", help="Amount, 64 hex chars"),
    secret: Optional[str] = typer.Option(
        None, "--secret", envvar="WALLET_SECRET", show_envvar=True,
        help="Secret of the sending account (prompted for when omitted)",
    ),
):
    """Send funds, proving ownership of the sending account with its secret."""
    try:
        from_account = parse_account(sender)
        to_account = parse_account(recipient)
        value = parse_amount(amount)
    except WalletError as e:
        fail(e)

    if secret is None:
        secret = typer.prompt("Secret", hide_input=True)

    try:
        parsed_secret = parse_secret(secret)
    except WalletError as e:
        fail(e)
    del secret

    console.print("Preparing transfer...")
    console.print(f"From:   {from_account.hex()}")
    console.print(f"To:     {to_account.hex()}")
    console.print(f"Amount: {format_amount(value)}")

    pipeline = make_pipeline(get_config(ctx))
    with parsed_secret:
        try:
            result = pipeline.transfer(from_account, to_account, value, parsed_secret)
        except WalletError as e:
            fail(e)

    _print_result(result)


@app.command("transfer-permissionless")
def transfer_permissionless(
    ctx: typer.Context,
    sender: str = typer.Option(..., "--from", help="Publicly spendable account, 64 hex chars"),
    recipient: str = typer.Option(..., "--to", help="Receiving account, 64 hex chars"),
    amount: str = typer.Option(..., "--amount", help="Amount, 64 hex chars"),
):
    """Send funds out of an account that needs no secret (e.g. a faucet)."""
    try:
        from_account = parse_account(sender)
        to_account = parse_account(recipient)
        value = parse_amount(amount)
    except WalletError as e:
        fail(e)

    console.print("Preparing permissionless transfer...")
    console.print(f"From:   {from_account.hex()}")
    console.print(f"To:     {to_account.hex()}")
    console.print(f"Amount: {format_amount(value)}")

    pipeline = make_pipeline(get_config(ctx))
    try:
        result = pipeline.transfer_permissionless(from_account, to_account, value)
    except WalletError as e:
        fail(e)

    _print_result(result)


@app.command()
def status(
    ctx: typer.Context,
    tx_hash: str = typer.Argument(..., help="Transaction hash, 64 hex chars"),
):
    """Look up the status of a submitted transaction."""
    try:
        normalized = parse_identifier(tx_hash, "transaction hash")
        state = make_client(get_config(ctx)).transaction_status(normalized)
    except WalletError as e:
        fail(e)

    console.print(f"Transaction {normalized}: [bold]{escape(state)}[/]")


def _print_result(result) -> None:
    tx = result.transaction
    console.print(f"Inputs:  {len(tx.inputs)}")
    for out in tx.outputs:
        console.print(f"  → {out.recipient.hex()}  {format_amount(out.amount)}")
    if result.change:
        console.print(f"Change:  {result.change}")
    console.print(f"[green]✓ Transaction hash: {result.tx_hash}[/]")


if __name__ == "__main__":
    app()
