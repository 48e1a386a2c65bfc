"""Command line interface: relay JSON lines from stdin to stdout."""

from __future__ import annotations

import codecs
import json
import logging
from pathlib import Path

import click

from jsonstream.config import load_config
from jsonstream.errors import ConfigError, EncodeError
from jsonstream.events import ErrorEvent, RecordEvent, TextEvent
from jsonstream.instrumentation import Instrumentation
from jsonstream.stream import JSONStream
from jsonstream.transports import FileSource, TextIOSink
from jsonstream.version import get_jsonstream_version


def _unescape(value: str | None) -> str | None:
    """Turn ``\\n``-style escapes typed on the command line into characters."""
    if value is None:
        return None
    return codecs.decode(value, "unicode_escape")


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """Line-delimited JSON framing tools."""
    if version:
        click.echo(f"jsonstream {get_jsonstream_version()}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("--delimiter", default=None, help="Record delimiter; escapes like \\n are accepted")
@click.option("--pattern", default=None, help="Regex deciding which records are JSON")
@click.option(
    "--preserve-whitespace",
    is_flag=True,
    help="Pass whitespace-only text records through",
)
@click.option(
    "--max-record-length",
    type=click.IntRange(min=1),
    default=None,
    help="Characters buffered before the oldest are discarded",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="TOML file with a [stream] table",
)
@click.option("--drop-text", is_flag=True, help="Discard non-JSON text instead of echoing it")
@click.option("--stats", is_flag=True, help="Print read/write counters to stderr on exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
@click.pass_context
def relay(
    ctx: click.Context,
    delimiter: str | None,
    pattern: str | None,
    preserve_whitespace: bool,
    max_record_length: int | None,
    config_path: Path | None,
    drop_text: bool,
    stats: bool,
    verbose: bool,
) -> None:
    """Re-emit JSON records from stdin as compact lines on stdout.

    Non-JSON text goes to stderr. Exits with status 1 if any record failed
    to decode or a stream error occurred.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        config = load_config(
            config_path,
            delimiter=_unescape(delimiter),
            record_pattern=pattern,
            preserve_whitespace=True if preserve_whitespace else None,
            max_record_length=max_record_length,
        )
    except (ConfigError, UnicodeError) as error:
        raise click.UsageError(str(error)) from error

    instrumentation = Instrumentation() if stats else Instrumentation.from_env()
    source = FileSource(click.get_binary_stream("stdin"))
    sink = TextIOSink(click.get_text_stream("stdout"))
    stream = JSONStream(source, sink, config=config, instrumentation=instrumentation)
    failures = 0

    def on_record(event: RecordEvent) -> None:
        nonlocal failures
        try:
            stream.write(event.value)
        except EncodeError as error:
            failures += 1
            click.secho(str(error), fg="red", err=True)

    def on_text(event: TextEvent) -> None:
        if not drop_text:
            click.echo(event.text, nl=False, err=True)

    def on_error(event: ErrorEvent) -> None:
        nonlocal failures
        failures += 1
        click.secho(str(event.error), fg="red", err=True)

    stream.add_handler(on_record, RecordEvent)
    stream.add_handler(on_text, TextEvent)
    stream.add_handler(on_error, ErrorEvent)
    source.run()

    if stats:
        click.echo(json.dumps(instrumentation.snapshot(), sort_keys=True), err=True)
    if failures:
        ctx.exit(1)


__all__ = ["cli", "relay"]
