"""Behavior-focused tests for the `jsonstream` CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner, Result

import jsonstream
from jsonstream.cli import cli

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.integration


def _relay(*args: str, input: str) -> Result:
    return CliRunner().invoke(cli, ["relay", "--delimiter", "\\n", *args], input=input)


def test_relay_compacts_records_and_moves_text_to_stderr() -> None:
    result = _relay(input='starting up\n{ "a" : 1 }\n  {"b": [1, 2]}\n')

    assert result.exit_code == 0
    assert result.stdout == '{"a":1}\n{"b":[1,2]}\n'
    assert result.stderr == "starting up\n"


def test_relay_drop_text() -> None:
    result = _relay("--drop-text", input='noise\n{"a":1}\n')

    assert result.exit_code == 0
    assert result.stdout == '{"a":1}\n'
    assert result.stderr == ""


def test_relay_exits_nonzero_on_decode_errors() -> None:
    result = _relay(input='{"a":1}\n{broken\n{"b":2}\n')

    assert result.exit_code == 1
    assert result.stdout == '{"a":1}\n{"b":2}\n'
    assert "JSON Parse Error" in result.stderr


def test_relay_custom_delimiter_and_pattern() -> None:
    result = CliRunner().invoke(
        cli,
        ["relay", "--delimiter", "|", "--pattern", r"^\s*\[", "--drop-text"],
        input='[1]|{"ignored":true}|[2, 3]|',
    )

    assert result.exit_code == 0
    assert result.stdout == "[1]|[2,3]|"


def test_relay_unterminated_tail_is_not_emitted() -> None:
    result = _relay(input='{"a":1}\n{"b":2}')

    assert result.exit_code == 0
    assert result.stdout == '{"a":1}\n'


def test_relay_stats() -> None:
    result = _relay("--stats", "--drop-text", input='{"a":1}\n{"b":2}\n')

    assert result.exit_code == 0
    snapshot = json.loads(result.stderr.strip().splitlines()[-1])
    assert snapshot["counters"]["messages_read"] == 2
    assert snapshot["counters"]["messages_written"] == 2
    assert snapshot["counters"]["bytes_written"] == len('{"a":1}\n{"b":2}\n')


def test_relay_reads_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "jsonstream.toml"
    config_path.write_text('[stream]\ndelimiter = ";"\npreserve_whitespace = true\n')

    result = CliRunner().invoke(
        cli,
        ["relay", "--config", str(config_path)],
        input='{"a":1}; ;',
    )

    assert result.exit_code == 0
    assert result.stdout == '{"a":1};'
    assert result.stderr == " ;"


def test_relay_rejects_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "jsonstream.toml"
    config_path.write_text("[stream]\nmax_record_length = -1\n")

    result = CliRunner().invoke(cli, ["relay", "--config", str(config_path)], input="")

    assert result.exit_code == 2
    assert "Invalid stream configuration" in result.stderr


def test_version_flag() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert result.stdout == f"jsonstream {jsonstream.__version__}\n"
