from __future__ import annotations

from pathlib import Path

import anyio
import httpx
import typer

from . import __version__
from .client import Client
from .config import LuffaSettings, load_settings
from .errors import LuffaError
from .logging import get_logger, setup_logging
from .message import Message

logger = get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Luffa bot client.",
)

_CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Path to luffa.toml (default: .luffa or ~/.luffa)."
)
_DEBUG_OPTION = typer.Option(False, "--debug", help="Log debug output to the console.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    _ = version


def _load_or_exit(config: Path | None) -> LuffaSettings:
    try:
        settings, _ = load_settings(config)
    except LuffaError as e:
        typer.secho(f"error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
    return settings


def _client(settings: LuffaSettings) -> Client:
    return Client(
        settings.secret,
        poll_interval_s=settings.poll_interval_s,
        base_url=settings.base_url,
    )


async def _check(client: Client) -> int:
    async with client:
        data = await client.rest.receive()
    return len(data) if isinstance(data, list) else 0


async def _echo(message: Message) -> None:
    if not message.content:
        return
    await message.reply(message.content)


@app.command()
def check(
    config: Path | None = _CONFIG_OPTION,
    debug: bool = _DEBUG_OPTION,
) -> None:
    """Validate the bot secret with a single poll."""
    setup_logging(debug=debug)
    settings = _load_or_exit(config)
    try:
        pending = anyio.run(_check, _client(settings))
    except (LuffaError, httpx.HTTPError) as e:
        typer.secho(
            f"error: {e}. Check your API secret.", fg=typer.colors.RED, err=True
        )
        raise typer.Exit(code=1) from None
    typer.echo(f"secret ok ({pending} pending channel(s))")


@app.command()
def echo(
    config: Path | None = _CONFIG_OPTION,
    debug: bool = _DEBUG_OPTION,
) -> None:
    """Run a bot that replies to every message with its own text."""
    setup_logging(debug=debug)
    settings = _load_or_exit(config)
    client = _client(settings)
    client.on_message(_echo)
    try:
        anyio.run(client.run)
    except KeyboardInterrupt:
        logger.info("echo.interrupted")
    except LuffaError as e:
        typer.secho(f"error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
