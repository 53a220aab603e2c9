"""
coinselect CLI - run coin selection against a JSON coin list.
"""

from __future__ import annotations

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from pydantic import ValidationError

from coinselect.config import get_settings
from coinselect.fees import FeeModel
from coinselect.manager import CoinManager
from coinselect.models import (
    Coin,
    InsufficientFunds,
    OutPoint,
    SelectionStrategy,
    SelectionSuccess,
    SelectionTarget,
)
from coinselect.pool import CoinPoolError
from coinselect.selector import CoinSelector

app = typer.Typer(
    name="coinselect",
    help="Bitcoin coin selection engine",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_coins(path: Path) -> list[Coin]:
    """
    Load coins from a JSON file.

    The file holds a list of objects with ``txid``, ``vout``, ``value``,
    ``confirmations`` and ``is_change``, plus optional ``frozen``,
    ``address`` and ``label``.
    """
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("Coin file must contain a JSON list")
    coins = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid coin entry: {entry!r}")
        entry = dict(entry)
        outpoint = OutPoint(txid=entry.pop("txid", ""), vout=entry.pop("vout", -1))
        coins.append(Coin(outpoint=outpoint, **entry))
    return coins


def result_to_dict(result: Any) -> dict[str, Any]:
    if isinstance(result, SelectionSuccess):
        return {
            "status": "success",
            "selected": [
                {"outpoint": str(c.outpoint), "value": c.value} for c in result.selected
            ],
            "input_total": result.total_input,
            "fee": result.fee,
            "change": result.change,
        }
    if isinstance(result, InsufficientFunds):
        return {
            "status": "insufficient_funds",
            "available": result.available,
            "required": result.required,
        }
    return {"status": "unsatisfiable", "reason": result.reason}


def parse_fee_rate(value: str) -> Decimal:
    try:
        rate = Decimal(value)
    except InvalidOperation as e:
        raise typer.BadParameter(f"Invalid fee rate: {value}") from e
    if not rate.is_finite() or rate <= 0:
        raise typer.BadParameter(f"Fee rate must be positive, got {value}")
    return rate


@app.command()
def select(
    coins_file: Path = typer.Option(
        ..., "--coins", "-c", exists=True, help="JSON file with the coin list"
    ),
    amount: int = typer.Option(..., "--amount", "-a", help="Payment amount in sats"),
    fee_rate: str | None = typer.Option(None, "--fee-rate", "-r", help="Fee rate in sat/vB"),
    strategy: SelectionStrategy = typer.Option(
        SelectionStrategy.MINIMIZE_FEE, "--strategy", "-s", help="Selection strategy"
    ),
    coin: list[str] | None = typer.Option(
        None, "--coin", help="Coin to spend as txid:vout (coin_control, repeatable)"
    ),
    timeout_ms: int | None = typer.Option(
        None, "--timeout-ms", min=1, help="Branch-and-bound timeout"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Privacy shuffle seed"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
) -> None:
    """Select coins paying AMOUNT at the given fee rate."""
    setup_logging(log_level)

    settings = get_settings()
    if timeout_ms is not None:
        settings.bnb_timeout_ms = timeout_ms
    if seed is not None:
        settings.privacy_seed = seed

    try:
        rate = parse_fee_rate(fee_rate) if fee_rate is not None else settings.default_fee_rate
        target = SelectionTarget(amount=amount, fee_rate=rate)
        coin_ids = [OutPoint.parse(c) for c in coin or []]
        manager = CoinManager(selector=CoinSelector(settings=settings), settings=settings)
        manager.add_coins(load_coins(coins_file))
    except (ValueError, ValidationError, CoinPoolError, typer.BadParameter) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e

    result = manager.select(strategy, target, coin_ids)
    data = result_to_dict(result)

    if as_json:
        typer.echo(json.dumps(data, indent=2))
    elif isinstance(result, SelectionSuccess):
        typer.echo(f"Selected {result.input_count} coins ({result.total_input} sats):")
        for c in result.selected:
            typer.echo(f"  {c.outpoint}  {c.value:>15,} sats  conf={c.confirmations}")
        typer.echo(f"Fee:    {result.fee:,} sats")
        typer.echo(f"Change: {result.change:,} sats")
    elif isinstance(result, InsufficientFunds):
        typer.echo(
            f"Insufficient funds: available {result.available:,} sats, "
            f"required {result.required:,} sats"
        )
    else:
        typer.echo(f"Unsatisfiable: {result.reason}")

    if not isinstance(result, SelectionSuccess):
        raise typer.Exit(1)


@app.command()
def strategies() -> None:
    """List the available selection strategies."""
    for s in SelectionStrategy:
        typer.echo(s.value)


@app.command()
def fee(
    inputs: int = typer.Option(1, "--inputs", "-i", help="Number of inputs"),
    outputs: int = typer.Option(2, "--outputs", "-o", help="Number of outputs"),
    fee_rate: str = typer.Option("1", "--fee-rate", "-r", help="Fee rate in sat/vB"),
) -> None:
    """Show estimated size, fee and dust threshold for a transaction shape."""
    rate = parse_fee_rate(fee_rate)
    model = FeeModel(dust_floor=get_settings().dust_floor)
    try:
        size = model.estimate_size(inputs, outputs)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    typer.echo(f"Size:  {size} vB")
    typer.echo(f"Fee:   {model.estimate_fee(size, rate)} sats")
    typer.echo(f"Dust:  {model.dust_threshold(rate)} sats")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
