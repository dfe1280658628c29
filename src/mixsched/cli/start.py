# src/mixsched/cli/start.py
"""
Start command for the mixsched CLI: validates the configuration and runs
the admission webhook server.
"""

import logging
import traceback
from typing import Optional

import typer
from typing_extensions import Annotated

from ..api.app import serve
from ..core.config import config

logger = logging.getLogger(__name__)

app = typer.Typer(name="start", help="Start the admission webhook server.")


@app.callback(invoke_without_command=True)
def start(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option("--host", help="Address to bind (default: API_HOST).")] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="Port to listen on (default: PORT).")] = None,
    cert_file: Annotated[Optional[str], typer.Option("--cert-file", help="TLS certificate path.")] = None,
    key_file: Annotated[Optional[str], typer.Option("--key-file", help="TLS private key path.")] = None,
) -> None:
    """
    Validate the configuration and serve admission requests until interrupted.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config.validate_instance()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)

    try:
        serve(host=host, port=port, cert_file=cert_file, key_file=key_file)
    except KeyboardInterrupt:
        logger.info("Shutting down mixsched webhook.")
        raise typer.Exit()
    except Exception as e:
        logger.error(f"An unexpected error occurred during startup: {e}")
        logger.error("Startup failed: %s", traceback.format_exc())
        raise typer.Exit(code=1)
