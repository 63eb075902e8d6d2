"""
utxoselect CLI - Run coin selection against a JSON snapshot of outputs.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError

from utxoselect.config import get_settings
from utxoselect.errors import CoinSelectionError
from utxoselect.fees import linear_fee
from utxoselect.models import PrivacyLevel, SelectionContext, StrategyName, UnspentOutput
from utxoselect.selector import CoinSelector

app = typer.Typer(
    name="utxoselect",
    help="UTXO coin selection",
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


def load_snapshot(path: Path) -> list[UnspentOutput]:
    """
    Read outputs from a JSON file.

    Expected format: [{"commitment": "...", "value": 1000, ...}, ...]
    """
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("Snapshot must be a JSON list of outputs")
    return [UnspentOutput.model_validate(item) for item in data]


def _build_context(
    snapshot: Path,
    target: int,
    base_fee: int,
    fee_per_input: int,
    fee_per_output: int,
    max_inputs: int,
    dust: int,
    privacy: PrivacyLevel,
    strategy: StrategyName | None,
    seed: int | None,
    height: int | None,
) -> SelectionContext:
    if not snapshot.exists():
        logger.error(f"Snapshot file not found: {snapshot}")
        raise typer.Exit(1)

    try:
        utxos = load_snapshot(snapshot)
    except (ValueError, ValidationError) as e:
        logger.error(f"Failed to read snapshot {snapshot}: {e}")
        raise typer.Exit(1)

    try:
        fee_function = linear_fee(fee_per_input, fee_per_output, base=base_fee)
    except ValueError as e:
        logger.error(f"Invalid fee parameters: {e}")
        raise typer.Exit(1)

    return SelectionContext(
        target=target,
        fee_function=fee_function,
        utxos=tuple(utxos),
        max_inputs=max_inputs,
        dust_threshold=dust,
        privacy_level=privacy,
        strategy=strategy,
        seed=seed,
        current_height=height,
    )


SnapshotOption = typer.Option(..., "--snapshot", "-s", help="JSON file with the outputs")
TargetOption = typer.Option(..., "--target", "-t", help="Payment amount")
BaseFeeOption = typer.Option(0, "--base-fee", help="Fixed fee per transaction")
FeePerInputOption = typer.Option(0, "--fee-per-input", help="Fee per input")
FeePerOutputOption = typer.Option(0, "--fee-per-output", help="Fee per output")
MaxInputsOption = typer.Option(100, "--max-inputs", help="Maximum inputs")
DustOption = typer.Option(0, "--dust", help="Dust threshold")
PrivacyOption = typer.Option(PrivacyLevel.NONE, "--privacy", "-p", help="Privacy level")
SeedOption = typer.Option(None, "--seed", help="Seed for randomized strategies")
HeightOption = typer.Option(None, "--height", help="Current chain height for maturity")
LogLevelOption = typer.Option("WARNING", "--log-level", "-l")


@app.command()
def select(
    snapshot: Path = SnapshotOption,
    target: int = TargetOption,
    base_fee: int = BaseFeeOption,
    fee_per_input: int = FeePerInputOption,
    fee_per_output: int = FeePerOutputOption,
    max_inputs: int = MaxInputsOption,
    dust: int = DustOption,
    privacy: PrivacyLevel = PrivacyOption,
    strategy: StrategyName | None = typer.Option(
        None, "--strategy", help="Strategy to try first"
    ),
    seed: int | None = SeedOption,
    height: int | None = HeightOption,
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    log_level: str = LogLevelOption,
) -> None:
    """Select inputs for a payment."""
    setup_logging(log_level)

    context = _build_context(
        snapshot,
        target,
        base_fee,
        fee_per_input,
        fee_per_output,
        max_inputs,
        dust,
        privacy,
        strategy,
        seed,
        height,
    )
    selector = CoinSelector(get_settings().to_selector_config())

    try:
        result = selector.select(context)
    except CoinSelectionError as e:
        logger.error(f"Selection failed: {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    selection = result.selection
    typer.echo(f"Strategy:   {selection.strategy}")
    typer.echo(f"Inputs:     {selection.input_count}")
    for utxo in selection.inputs:
        typer.echo(f"  {utxo.commitment}  {utxo.value:,}")
    typer.echo(f"Total:      {selection.total:,}")
    typer.echo(f"Fee:        {selection.fee:,}")
    typer.echo(f"Change:     {selection.change:,}")
    typer.echo(f"Tried:      {', '.join(result.metadata.strategies_attempted)}")


@app.command()
def compare(
    snapshot: Path = SnapshotOption,
    target: int = TargetOption,
    base_fee: int = BaseFeeOption,
    fee_per_input: int = FeePerInputOption,
    fee_per_output: int = FeePerOutputOption,
    max_inputs: int = MaxInputsOption,
    dust: int = DustOption,
    privacy: PrivacyLevel = PrivacyOption,
    seed: int | None = SeedOption,
    height: int | None = HeightOption,
    log_level: str = LogLevelOption,
) -> None:
    """Run every strategy on the same request and show the results side by side."""
    setup_logging(log_level)

    context = _build_context(
        snapshot,
        target,
        base_fee,
        fee_per_input,
        fee_per_output,
        max_inputs,
        dust,
        privacy,
        None,
        seed,
        height,
    )
    selector = CoinSelector(get_settings().to_selector_config())

    try:
        results = selector.compare_strategies(context)
    except CoinSelectionError as e:
        logger.error(f"Comparison failed: {e}")
        raise typer.Exit(1)

    for name, outcome in results.items():
        if isinstance(outcome, CoinSelectionError):
            typer.echo(f"{name:<18} FAILED  {type(outcome).__name__}: {outcome}")
        else:
            typer.echo(
                f"{name:<18} inputs={outcome.input_count:<4} fee={outcome.fee:<8} "
                f"change={outcome.change}"
            )


@app.command()
def strategies() -> None:
    """List registered selection strategies."""
    for name in CoinSelector().available_strategies():
        typer.echo(name.value)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
