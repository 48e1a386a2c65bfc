"""CLI entry point for jsonstream."""

from __future__ import annotations

from jsonstream.cli import cli

if __name__ == "__main__":
    cli()
