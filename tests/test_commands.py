"""Tests for bounded command execution."""

import asyncio
import logging
import sys

from tracescan.probes.commands import run_command


def test_output_is_cut_at_limit_and_logged(caplog):
    script = "import sys; sys.stdout.write('x' * 200000); sys.stderr.write('done')"
    with caplog.at_level(logging.WARNING, logger="tracescan.probes.commands"):
        result = asyncio.run(run_command([sys.executable, "-c", script], timeout=30, output_limit=1000))

    assert result is not None
    assert result.ok
    assert result.stdout == "x" * 1000
    assert result.stderr == "done"
    assert result.truncated is True
    assert "truncated at 1000 bytes" in caplog.text


def test_output_within_limit_is_kept_whole(caplog):
    with caplog.at_level(logging.WARNING, logger="tracescan.probes.commands"):
        result = asyncio.run(run_command([sys.executable, "-c", "print('hello')"], timeout=30))

    assert result is not None
    assert result.stdout.strip() == "hello"
    assert result.truncated is False
    assert "truncated" not in caplog.text


def test_nonzero_exit_is_reported():
    result = asyncio.run(run_command([sys.executable, "-c", "import sys; sys.exit(3)"], timeout=30))
    assert result is not None
    assert result.returncode == 3
    assert not result.ok


def test_missing_executable_returns_none():
    assert asyncio.run(run_command(["tracescan-no-such-tool"], timeout=5)) is None


def test_timeout_returns_none():
    script = "import time; time.sleep(30)"
    assert asyncio.run(run_command([sys.executable, "-c", script], timeout=0.5)) is None
