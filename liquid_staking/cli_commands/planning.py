"""Planning and aggregation commands for the liquid-staking CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from liquid_staking.allocation import AllocationPlanner
from liquid_staking.completion import CompletionTracker
from liquid_staking.core.config import load_config
from liquid_staking.errors import LiquidStakingError
from liquid_staking.intents import IntentKeeper

from .utils import (
    PreviewSubmitter,
    build_stores,
    load_rewards,
    load_state,
    parse_coin,
    save_state,
    setup_logging,
)

planning_app = typer.Typer(
    name="planning",
    help="Intent aggregation and allocation planning commands",
)


@planning_app.command()
def plan(
    amount: int = typer.Option(..., "--amount", "-a", help="Amount of base denom to place"),
    state_file: Path | None = typer.Option(
        None,
        "--state",
        help="State file (defaults to the configured state_file)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Plan how a new deposit is split across the zone's validators."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    state = load_state(state_file or config.state_file)
    stores = build_stores(state, config.account_hrp)
    zone = state.zone
    planner = AllocationPlanner(stores.delegations)

    try:
        allocations = planner.plan_for_delegation(zone, amount)
    except LiquidStakingError as exc:
        logger.error("Planning failed: {}", exc)
        raise typer.Exit(code=1) from exc

    current, _ = stores.delegations.delegation_map(zone)
    target = zone.aggregate_intent_or_default()

    table = Table(title=f"Allocation plan for {zone.chain_id}")
    table.add_column("Validator", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Planned", justify="right", style="green")
    for valoper in sorted(allocations):
        table.add_row(
            valoper,
            str(current.get(valoper, 0)),
            f"{target[valoper].weight:.4f}",
            str(allocations[valoper]),
        )

    console = Console()
    console.print(table)
    console.print(f"Total planned: {sum(allocations.values())} {zone.base_denom}")


@planning_app.command()
def aggregate(
    state_file: Path | None = typer.Option(
        None,
        "--state",
        help="State file (defaults to the configured state_file)",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        help="Persist the recomputed aggregate intent back to the state file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Recompute the zone's aggregate intent from every depositor's intent."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    path = state_file or config.state_file
    state = load_state(path)
    stores = build_stores(state, config.account_hrp)
    keeper = IntentKeeper(stores.intents, stores.zones, stores.balances)

    try:
        aggregate_intent = keeper.aggregate_intents(state.zone)
    except LiquidStakingError as exc:
        logger.error("Aggregation failed: {}", exc)
        raise typer.Exit(code=1) from exc

    table = Table(title=f"Aggregate intent for {state.zone.chain_id}")
    table.add_column("Validator", style="cyan")
    table.add_column("Weight", justify="right", style="green")
    for valoper in sorted(aggregate_intent):
        table.add_row(valoper, str(aggregate_intent[valoper].weight))

    console = Console()
    console.print(table)
    console.print(f"Validators: {len(aggregate_intent)}")

    if write:
        save_state(path, state)


@planning_app.command("shares-plan")
def shares_plan(
    coins: list[str] = typer.Option(
        ...,
        "--coin",
        "-c",
        help="Share-denominated coin as DENOM:AMOUNT (repeatable)",
    ),
    state_file: Path | None = typer.Option(
        None,
        "--state",
        help="State file (defaults to the configured state_file)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List the share-redemption instructions for a bundle of share tokens."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    state = load_state(state_file or config.state_file)
    parsed = [parse_coin(raw) for raw in coins]
    instructions = AllocationPlanner.shares_instructions(state.zone, parsed)

    table = Table(title=f"Share redemptions for {state.zone.chain_id}")
    table.add_column("Denom", style="cyan")
    table.add_column("Amount", justify="right", style="green")
    for instruction in instructions:
        table.add_row(instruction.amount.denom, str(instruction.amount.amount))

    console = Console()
    console.print(table)
    console.print(f"Instructions: {len(instructions)}")


@planning_app.command("withdraw-rewards")
def withdraw_rewards(
    rewards_file: Path = typer.Option(
        ...,
        "--rewards",
        "-r",
        help="JSON total-rewards response for the delegator",
    ),
    delegator: str | None = typer.Option(
        None,
        "--delegator",
        help="Delegator whose rewards are withdrawn (defaults to the zone delegation address)",
    ),
    state_file: Path | None = typer.Option(
        None,
        "--state",
        help="State file (defaults to the configured state_file)",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        help="Persist the updated outstanding count back to the state file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Preview the reward withdrawals for a rewards response and count them as outstanding."""

    config = load_config()
    setup_logging(config.log_dir, verbose)

    path = state_file or config.state_file
    state = load_state(path)
    rewards = load_rewards(rewards_file)
    stores = build_stores(state, config.account_hrp)
    submitter = PreviewSubmitter()
    tracker = CompletionTracker(
        stores.zones, submitter, stores.delegations, default_memo=config.default_memo
    )

    outstanding = tracker.withdraw_rewards_for_response(
        state.zone, delegator or state.zone.delegation_address, rewards
    )

    table = Table(title=f"Reward withdrawals for {state.zone.chain_id}")
    table.add_column("Delegator", style="cyan")
    table.add_column("Validator", style="green")
    memo = ""
    for instructions, _, memo in submitter.batches:
        for instruction in instructions:
            table.add_row(instruction.delegator_address, instruction.validator_address)

    console = Console()
    console.print(table)
    if submitter.batches:
        console.print(f"Memo: {memo}")
    console.print(f"Outstanding: {outstanding}")

    if write:
        save_state(path, state)
