"""
community_sdk.cli.main
======================

`community-sdk`: inspect communities from the command line.

Examples
--------
    $ community-sdk version
    $ community-sdk state <contract id>
    $ community-sdk holder <contract id>     # one weighted holder draw
    $ community-sdk cost --ar                 # current action fee

Configuration
-------------
- Gateway URL   : `--gateway` or env `COMMUNITY_GATEWAY_URL`
- Evaluator URL : `--evaluator` or env `COMMUNITY_EVALUATOR_URL`
- Log level     : `--log-level` or env `COMMUNITY_LOG_LEVEL` (default: WARNING)

Every other `COMMUNITY_*` variable understood by `CommunityConfig.from_env`
applies as well.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import typer

from ..community import Community
from ..config import CommunityConfig
from ..errors import CommunityError
from ..version import __version__

app = typer.Typer(
    name="community-sdk",
    help="Community SDK CLI: read community state, draw fee recipients, quote costs.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _config(ctx: typer.Context) -> CommunityConfig:
    cfg = ctx.obj
    if not isinstance(cfg, CommunityConfig):
        cfg = CommunityConfig.from_env()
    return cfg


def _fail(e: Exception) -> None:
    typer.echo(f"error: {e}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def _root(
    ctx: typer.Context,
    gateway: Optional[str] = typer.Option(None, "--gateway", help="Ledger gateway URL.", envvar="COMMUNITY_GATEWAY_URL"),
    evaluator: Optional[str] = typer.Option(
        None, "--evaluator", help="Contract evaluator JSON-RPC URL.", envvar="COMMUNITY_EVALUATOR_URL"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level.", envvar="COMMUNITY_LOG_LEVEL"),
) -> None:
    _configure_logging(log_level)
    try:
        ctx.obj = CommunityConfig.with_overrides(
            CommunityConfig.from_env(), gateway_url=gateway, evaluator_url=evaluator
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()
def version() -> None:
    """Print the SDK version."""
    typer.echo(__version__)


async def _state(cfg: CommunityConfig, contract: str) -> dict:
    async with Community(config=cfg) as community:
        snapshot = await community.bind_contract(contract)
        return snapshot.to_dict(settings_as_pairs=False)


@app.command()
def state(ctx: typer.Context, contract: str = typer.Argument(..., help="Community contract id.")) -> None:
    """Read and print a community's current state."""
    try:
        _print_json(asyncio.run(_state(_config(ctx), contract)))
    except CommunityError as e:
        _fail(e)


async def _holder(cfg: CommunityConfig, contract: str) -> Optional[str]:
    async with Community(config=cfg) as community:
        await community.bind_contract(contract)
        return await community.select_weighted_holder()


@app.command()
def holder(ctx: typer.Context, contract: str = typer.Argument(..., help="Community contract id.")) -> None:
    """Draw one holder of a community, weighted by balance plus vault."""
    try:
        picked = asyncio.run(_holder(_config(ctx), contract))
    except CommunityError as e:
        _fail(e)
        return
    if picked is None:
        typer.echo("no eligible holder", err=True)
        raise typer.Exit(code=1)
    typer.echo(picked)


async def _cost(cfg: CommunityConfig, in_ar: bool) -> str:
    async with Community(config=cfg) as community:
        return await community.get_action_cost(in_ar)


@app.command()
def cost(ctx: typer.Context, ar: bool = typer.Option(False, "--ar", help="Show the fee in AR instead of winston.")) -> None:
    """Quote the current fee charged per community action."""
    try:
        typer.echo(asyncio.run(_cost(_config(ctx), ar)))
    except CommunityError as e:
        _fail(e)


def main() -> None:  # pragma: no cover - thin wrapper
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
