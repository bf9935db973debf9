"""CLI entry point for the liquid-staking ledger."""

import typer

from liquid_staking.cli_commands.planning import planning_app

app = typer.Typer(
    name="liquid-staking",
    help="Liquid staking ledger - intent aggregation and allocation planning",
)

app.add_typer(planning_app, name="planning")


def _register_root_aliases(source_app: typer.Typer) -> None:
    """Expose every command of source_app at the root level as well."""
    for cmd in source_app.registered_commands:
        if cmd.callback is None:
            continue
        name = cmd.name or cmd.callback.__name__.replace("_", "-")
        app.command(name=name, help=cmd.help)(cmd.callback)


_register_root_aliases(planning_app)


if __name__ == "__main__":
    app()
