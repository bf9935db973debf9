"""Command groups for the liquid-staking CLI."""
