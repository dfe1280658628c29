# src/mixsched/cli/main.py
"""
This module is the main entry point for the mixsched CLI.
"""

import logging

import typer

from ..core.config import config
from . import start

# --- Setup Logger ---
logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="mixsched",
    help="Admission webhook spreading workloads across spot and on-demand nodes.",
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        from .. import __version__

        typer.echo(f"mixsched version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """
    Show the version of mixsched.
    """
    from .. import __version__

    typer.echo(f"mixsched version: {__version__}")


@app.command()
def settings():
    """
    Print the policy defaults resolved from the environment.
    """
    try:
        resolved = config.build_settings()
    except ValueError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"enabled: {resolved.enabled}")
    typer.echo(f"excluded_namespaces: {','.join(sorted(resolved.excluded_namespaces))}")
    typer.echo(f"spot_weight: {resolved.spot_weight}")
    typer.echo(f"on_demand_weight: {resolved.on_demand_weight}")
    typer.echo(f"on_demand_floor: {resolved.on_demand_floor}")
    typer.echo(f"spot_floor: {resolved.spot_floor}")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    mixsched CLI main entry point.
    """
    pass


app.add_typer(start.app, name="start")


if __name__ == "__main__":
    app()
