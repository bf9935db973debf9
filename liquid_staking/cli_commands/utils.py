"""Shared utility functions for CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import typer
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from liquid_staking.models import (
    Coin,
    Delegation,
    DelegationTotalRewards,
    DelegatorIntent,
    Instruction,
    Zone,
)
from liquid_staking.store import (
    DelegationStore,
    IntentStore,
    MemoryKVStore,
    StaticBalances,
    ZoneStore,
)


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """Send loguru output to stderr and to a daily staking log under log_dir."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        level="DEBUG" if verbose else "INFO",
    )
    logger.add(
        log_dir / "staking_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="7 days",
        level="DEBUG",
    )


class StakingState(BaseModel):
    """On-disk snapshot consumed by the command line tools."""

    zone: Zone
    delegations: list[Delegation] = Field(default_factory=list)
    intents: list[DelegatorIntent] = Field(default_factory=list)
    balances: dict[str, int] = Field(default_factory=dict)


@dataclass(slots=True)
class LoadedStores:
    """In-memory stores populated from a StakingState."""

    kv: MemoryKVStore
    zones: ZoneStore
    intents: IntentStore
    delegations: DelegationStore
    balances: StaticBalances


def load_state(path: Path) -> StakingState:
    """Read a state file, exiting with a message if it cannot be parsed."""
    if not path.exists():
        logger.error("State file not found: {}", path)
        raise typer.Exit(code=1)
    try:
        return StakingState.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        logger.error("Invalid state file {}: {}", path, exc)
        raise typer.Exit(code=1) from exc


def save_state(path: Path, state: StakingState) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.loads(state.model_dump_json())
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Saved staking state to {}", path)


def build_stores(state: StakingState, account_hrp: str | None = None) -> LoadedStores:
    kv = MemoryKVStore()
    zones = ZoneStore(kv)
    intents = IntentStore(kv)
    delegations = DelegationStore(kv)

    zones.set_zone(state.zone)
    for delegation in state.delegations:
        delegations.set_delegation(state.zone, delegation)
    for intent in state.intents:
        intents.set_intent(state.zone, intent)

    return LoadedStores(
        kv=kv,
        zones=zones,
        intents=intents,
        delegations=delegations,
        balances=StaticBalances(state.balances, account_hrp=account_hrp),
    )


def parse_coin(raw: str) -> Coin:
    """Parse ``<denom>:<amount>`` into a Coin."""
    denom, separator, amount = raw.rpartition(":")
    if not separator or not denom or not amount.isdigit():
        raise typer.BadParameter(f"expected DENOM:AMOUNT, got {raw!r}")
    return Coin(denom=denom, amount=int(amount))


def load_rewards(path: Path) -> DelegationTotalRewards:
    """Read a decoded total-rewards response, exiting if it cannot be parsed."""
    if not path.exists():
        logger.error("Rewards file not found: {}", path)
        raise typer.Exit(code=1)
    try:
        return DelegationTotalRewards.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        logger.error("Invalid rewards file {}: {}", path, exc)
        raise typer.Exit(code=1) from exc


@dataclass(slots=True)
class PreviewSubmitter:
    """Collects submitted batches instead of relaying them."""

    batches: list[tuple[list[Instruction], str, str]] = field(default_factory=list)

    def submit_tx(self, instructions: Sequence[Instruction], account: str, memo: str = "") -> None:
        self.batches.append((list(instructions), account, memo))
        logger.debug("Previewed {} instructions for {}", len(instructions), account)
