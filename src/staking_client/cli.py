"""CLI entry point for the staking client."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, NoReturn, TypeVar

import click

from staking_client.client import StakingClient
from staking_client.config import load_config, parse_address, parse_amount, parse_timeout
from staking_client.errors import (
    Cancelled,
    ConfigError,
    DeadlineExceeded,
    ExecutionReverted,
    NoPendingWithdrawals,
    RemoteRevert,
    StakingError,
    TransientNetworkError,
)
from staking_client.ethereum.signer import KeySigner
from staking_client.models.config import ClientConfig
from staking_client.models.transcoder import Transcoder

T = TypeVar("T")

# Checked in order; first match wins.
EXIT_CODES: list[tuple[type[StakingError], int]] = [
    (ConfigError, 2),
    (RemoteRevert, 3),
    (ExecutionReverted, 3),
    (TransientNetworkError, 4),
    (DeadlineExceeded, 5),
    (Cancelled, 5),
    (NoPendingWithdrawals, 6),
]


def exit_code_for(exc: StakingError) -> int:
    for kind, code in EXIT_CODES:
        if isinstance(exc, kind):
            return code
    return 1


def _fail(exc: StakingError) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(exit_code_for(exc))


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, turning StakingError into a mapped exit code."""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except StakingError as exc:
        _fail(exc)


def _load(ctx: click.Context) -> ClientConfig:
    try:
        cfg = load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        _fail(exc)
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    return cfg


def _config(ctx: click.Context) -> ClientConfig:
    cfg = _load(ctx)
    if not cfg.contract_address:
        _fail(ConfigError("No contract address configured. Set ETH_CONTRACT or [ledger] contract_address."))
    return cfg


def _signer(cfg: ClientConfig) -> KeySigner:
    try:
        if cfg.private_key:
            return KeySigner.from_key(cfg.private_key)
        if cfg.key_file:
            return KeySigner.from_keyfile(cfg.key_file, cfg.password)
        raise ConfigError("No signing key configured. Set ETH_KEY and ETH_PASSWORD, or ETH_PRIVATE_KEY.")
    except ConfigError as exc:
        _fail(exc)


def _echo_transcoder(t: Transcoder) -> None:
    click.echo(f"{t.address}  {t.state.label:<12}  total={t.total_stake}  self={t.self_stake}  "
               f"delegated={t.delegated_stake}  capacity={t.capacity}  "
               f"min_self={t.effective_min_self_stake}")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """staking-client - query and operate the transcoder staking contract."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show client configuration."""
    cfg = _load(ctx)
    click.echo(f"RPC URL:        {cfg.rpc_url}")
    click.echo(f"Contract:       {cfg.contract_address or '(not set)'}")
    click.echo(f"Key file:       {cfg.key_file or '(not set)'}")
    click.echo(f"Private key:    {'***configured***' if cfg.private_key else '(not set)'}")
    click.echo(f"Poll interval:  {cfg.poll_interval}s")
    click.echo(f"Confirmation:   {cfg.confirmation_timeout}s")
    click.echo(f"Log level:      {cfg.log_level}")
    if cfg.update_approval:
        click.echo(f"Approval:       update to {cfg.approval_period}s")
    if cfg.update_min_stake:
        click.echo(f"Min stake:      update to {cfg.min_stake}")
    if cfg.slashed:
        click.echo(f"Slash:          {', '.join(cfg.slashed)}")


@cli.command()
@click.option("--bonded", is_flag=True, help="Only list transcoders in the Bonded state")
@click.option("--block", type=int, default=None, help="Read at this block (default: pin the latest)")
@click.pass_context
def transcoders(ctx: click.Context, bonded: bool, block: int | None) -> None:
    """List registered transcoders in registry order."""
    cfg = _config(ctx)

    async def _list() -> list[Transcoder]:
        async with StakingClient.from_config(cfg) as client:
            at = block if block is not None else await client.block_number()
            if bonded:
                return await client.get_bonded_transcoders(at)
            return await client.get_all_transcoders(at)

    result = _run(_list())
    for t in result:
        _echo_transcoder(t)
    click.echo(f"{len(result)} transcoder(s)")


@cli.command()
@click.argument("address")
@click.pass_context
def transcoder(ctx: click.Context, address: str) -> None:
    """Show one transcoder."""
    cfg = _config(ctx)

    async def _show() -> Transcoder:
        async with StakingClient.from_config(cfg) as client:
            return await client.get_transcoder(parse_address(address))

    _echo_transcoder(_run(_show()))


@cli.command()
@click.argument("address")
@click.pass_context
def withdrawal(ctx: click.Context, address: str) -> None:
    """Show the pending withdrawal of ADDRESS."""
    cfg = _config(ctx)

    async def _show():
        async with StakingClient.from_config(cfg) as client:
            return await client.get_pending_withdrawal(parse_address(address))

    pending = _run(_show())
    if not pending.exists:
        click.echo("No pending withdrawal")
    else:
        click.echo(f"Pending:    {pending.amount}")
        click.echo(f"Ready at:   {pending.readiness_timestamp}")


# ── Transactions ───────────────────────────────────────


@cli.command()
@click.option("--capacity", type=int, required=True, help="Transcoding capacity to advertise")
@click.pass_context
def register(ctx: click.Context, capacity: int) -> None:
    """Register the configured key as a transcoder."""
    cfg = _config(ctx)
    signer = _signer(cfg)

    async def _register():
        async with StakingClient.from_config(cfg) as client:
            return await client.register_transcoder(signer, capacity)

    receipt = _run(_register())
    click.echo(f"Registered {signer.address} (tx {receipt.tx_hash})")


@cli.command()
@click.argument("to")
@click.argument("amount")
@click.pass_context
def delegate(ctx: click.Context, to: str, amount: str) -> None:
    """Delegate AMOUNT to transcoder TO."""
    cfg = _config(ctx)
    signer = _signer(cfg)

    async def _delegate():
        async with StakingClient.from_config(cfg) as client:
            return await client.delegate(signer, parse_address(to), parse_amount(amount))

    receipt = _run(_delegate())
    click.echo(f"Delegated {amount} to {to} (tx {receipt.tx_hash})")


@cli.command("request-withdrawal")
@click.argument("transcoder_address")
@click.argument("amount")
@click.pass_context
def request_withdrawal(ctx: click.Context, transcoder_address: str, amount: str) -> None:
    """Request withdrawal of AMOUNT staked with TRANSCODER_ADDRESS."""
    cfg = _config(ctx)
    signer = _signer(cfg)

    async def _request():
        async with StakingClient.from_config(cfg) as client:
            return await client.request_withdrawal(
                signer, parse_address(transcoder_address), parse_amount(amount),
            )

    info = _run(_request())
    if info.is_completed:
        click.echo(f"Withdrawn {info.amount}")
    else:
        click.echo(f"Withdrawal pending until {info.readiness_timestamp}")


@cli.command("complete-withdrawals")
@click.pass_context
def complete_withdrawals(ctx: click.Context) -> None:
    """Complete every ready withdrawal of the configured key."""
    cfg = _config(ctx)
    signer = _signer(cfg)

    async def _complete():
        async with StakingClient.from_config(cfg) as client:
            return await client.complete_withdrawals(signer)

    info = _run(_complete())
    click.echo(f"Withdrawn {info.amount}")


@cli.command("wait-withdrawal")
@click.option("--timeout", default=None, help="Give up after this long (seconds, or e.g. 500ms, 10m)")
@click.pass_context
def wait_withdrawal(ctx: click.Context, timeout: str | None) -> None:
    """Wait for a withdrawal of the configured key and complete it."""
    cfg = _config(ctx)
    signer = _signer(cfg)
    try:
        limit = parse_timeout(timeout) if timeout is not None else cfg.withdrawal_timeout
    except ConfigError as exc:
        _fail(exc)

    async def _wait():
        async with StakingClient.from_config(cfg) as client:
            return await client.wait_withdrawals_completed(signer, timeout=limit)

    info = _run(_wait())
    click.echo(f"Withdrawn {info.amount}")


# ── Operator ───────────────────────────────────────────


@cli.command()
@click.pass_context
def operate(ctx: click.Context) -> None:
    """Apply the configured operator actions.

    In order: update the approval period, update the minimum self stake,
    slash each configured address. Each transaction must be mined
    successfully before the next is sent.
    """
    cfg = _config(ctx)
    signer = _signer(cfg)

    if not (cfg.update_approval or cfg.update_min_stake or cfg.slashed):
        click.echo("Nothing to do.")
        return

    async def _operate() -> None:
        async with StakingClient.from_config(cfg) as client:
            if cfg.update_approval:
                await client.set_approval_period(signer, cfg.approval_period)
                click.echo(f"updated approval period to {cfg.approval_period}s")
            if cfg.update_min_stake:
                await client.set_self_min_stake(signer, cfg.min_stake)
                click.echo(f"updated min stake to {cfg.min_stake}")
            for address in cfg.slashed:
                await client.slash(signer, address)
                click.echo(f"jailed {address}")

    _run(_operate())


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
