"""Command-line interface for the danmaku client.

Example:
    >>> # From terminal:
    >>> # danmaku --version
    >>> # danmaku watch 12345 --duration 60
    >>> # danmaku handshake 12345
    >>> # danmaku decode capture.bin
    >>> # danmaku decode capture.hex --hex
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from danmaku import __version__
from danmaku.config import ClientConfig
from danmaku.errors import CodecError, ConnectError
from danmaku.observability import configure_logging
from danmaku.protocol.codec import build_handshake, parse_message
from danmaku.transport.client import DanmakuClient

app = typer.Typer(help="Live-room danmaku client.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"danmaku-client {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    """Live-room danmaku client."""


async def _watch(
    room_id: str, config: ClientConfig, duration: float | None, count: int | None
) -> int:
    shown = 0
    async with DanmakuClient(room_id, config=config) as client:

        async def consume() -> None:
            nonlocal shown
            async for event in client.events:
                line = event.display_text()
                if line is None:
                    continue
                typer.echo(line)
                shown += 1
                if count is not None and shown >= count:
                    return

        try:
            await asyncio.wait_for(consume(), timeout=duration)
        except asyncio.TimeoutError:
            pass
    return shown


@app.command("watch")
def watch(
    room_id: Annotated[str, typer.Argument(help="Live room identifier.")],
    url: Annotated[
        Optional[str],
        typer.Option("--url", help="WebSocket endpoint (default: DANMAKU_URL or public server)."),
    ] = None,
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", "-d", min=0, help="Stop after this many seconds."),
    ] = None,
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-n", min=1, help="Stop after printing this many lines."),
    ] = None,
    log_format: Annotated[
        str, typer.Option("--log-format", help="Log output format: console or json.")
    ] = "console",
    log_level: Annotated[str, typer.Option("--log-level", help="Minimum log level.")] = "WARNING",
) -> None:
    """Print chat and gift events from a live room until interrupted."""
    configure_logging(log_format=log_format, log_level=log_level, force=True)
    overrides = {"url": url} if url else {}
    try:
        config = ClientConfig.from_env(**overrides)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid configuration: {exc}") from exc

    try:
        asyncio.run(_watch(room_id, config, duration, count))
    except ConnectError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        typer.echo("Interrupted.", err=True)


@app.command("handshake")
def handshake(
    room_id: Annotated[str, typer.Argument(help="Live room identifier.")],
) -> None:
    """Print the open-subscription frame for a room as hex."""
    typer.echo(build_handshake(room_id).hex())


@app.command("decode")
def decode(
    path: Annotated[Path, typer.Argument(help="File holding one captured WebSocket message.")],
    hex_input: Annotated[
        bool, typer.Option("--hex", help="File contains hex text instead of raw bytes.")
    ] = False,
) -> None:
    """Decode a captured binary message and print its events as JSON lines."""
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    if hex_input:
        try:
            data = bytes.fromhex(path.read_text(encoding="utf-8").strip())
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid hex in {path}: {exc}") from exc
    else:
        data = path.read_bytes()

    try:
        events = parse_message(data)
    except CodecError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc

    for event in events:
        typer.echo(event.model_dump_json(by_alias=True))
