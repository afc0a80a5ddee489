"""Command-line entrypoint."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from share_cli import __version__
from share_cli.application.services import SessionController
from share_cli.bootstrap import build_session_controller
from share_cli.config import Settings
from share_cli.console import KeyboardSignals, StatusDisplay
from share_cli.domain.entities import Session, ShareRequest
from share_cli.domain.errors import SessionAbortedError
from share_cli.domain.phases import FatalErrorKind

console = Console(stderr=True)


def setup_logging(level: str, verbose: bool = False) -> None:
    """Route log records through rich so they render above the live view."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )


def _details_printer() -> Callable[[Session], None]:
    printed = False

    def print_details(session: Session) -> None:
        nonlocal printed
        if printed or session.details is None:
            return
        printed = True
        click.echo(session.details.model_dump_json())

    return print_details


async def _run_session(
    controller: SessionController,
    request: ShareRequest,
    as_json: bool,
) -> None:
    loop = asyncio.get_running_loop()
    signal_installed = False
    with suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, controller.request_shutdown)
        signal_installed = True

    keys = KeyboardSignals(controller.keep_serving)
    keys_available = keys.start()
    try:
        if as_json:
            controller.subscribe(_details_printer())
            await controller.run(request)
            return
        with StatusDisplay(console, keep_serving_available=keys_available) as display:
            controller.subscribe(display.update)
            await controller.run(request)
    finally:
        keys.close()
        if signal_installed:
            loop.remove_signal_handler(signal.SIGINT)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "file",
    required=False,
    type=click.Path(exists=True, path_type=Path),
)
@click.option("-n", "--name", help="Download file name (.zip is appended if missing).")
@click.option("-p", "--password", help="Archive password (random when omitted).")
@click.option(
    "--tunnel/--no-tunnel",
    default=None,
    help="Expose the download through a public tunnel (default from SHARE_TUNNEL_ENABLED).",
)
@click.option("--json", "as_json", is_flag=True, help="Print share details as JSON.")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.version_option(__version__, prog_name="share")
@click.pass_context
def cli(
    ctx: click.Context,
    file: Path | None,
    name: str | None,
    password: str | None,
    tunnel: bool | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Share FILE (or piped stdin) as an encrypted zip behind a one-off link."""

    try:
        settings = Settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
    setup_logging(settings.log_level, verbose)

    stdin = None
    if file is None and not sys.stdin.isatty():
        stdin = sys.stdin.buffer

    request = ShareRequest(
        source=file,
        stdin=stdin,
        name=name,
        password=password,
        tunnel=settings.tunnel_enabled if tunnel is None else tunnel,
    )
    controller = build_session_controller(settings)
    try:
        asyncio.run(_run_session(controller, request, as_json))
    except SessionAbortedError as exc:
        console.print(str(exc), style="red", markup=False)
        if exc.kind is FatalErrorKind.MISSING_INPUT:
            click.echo(ctx.get_usage(), err=True)
        ctx.exit(1)


def run() -> None:
    """Console script entrypoint."""

    cli()


__all__ = ["cli", "run", "setup_logging"]
