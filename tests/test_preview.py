"""Tests for bounded artifact previews."""

from __future__ import annotations

import os
import threading

import pytest

from tracescan.probes.preview import REDACTION_MARKER, is_binary, preview_artifact


def test_text_preview(tmp_path):
    f = tmp_path / ".bash_history"
    f.write_text("ls -la\ncd /tmp\n")

    result = preview_artifact(str(f))

    assert result["error"] is None
    assert result["is_binary"] is False
    assert result["content"] == "ls -la\ncd /tmp\n"
    assert result["bytes_read"] == 15


def test_binary_content_is_redacted(tmp_path):
    f = tmp_path / "Cookies"
    f.write_bytes(b"SQLite format 3\x00" + b"\x01" * 100)

    result = preview_artifact(str(f))

    assert result["is_binary"] is True
    assert result["content"] == REDACTION_MARKER


def test_preview_is_bounded(tmp_path):
    f = tmp_path / "big.log"
    f.write_text("a" * 10_000)

    result = preview_artifact(str(f), max_bytes=2048)

    assert result["bytes_read"] == 2048
    assert len(result["content"]) == 2048


def test_missing_file_and_directory(tmp_path):
    assert "not found" in preview_artifact(str(tmp_path / "nope"))["error"]
    assert "directory" in preview_artifact(str(tmp_path))["error"]


def test_is_binary_allows_whitespace_controls():
    assert not is_binary(b"col1\tcol2\r\n")
    assert is_binary(b"\x7f")
    assert not is_binary(b"")


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need POSIX")
def test_named_pipe_is_refused_without_blocking(tmp_path):
    fifo = tmp_path / ".fifo"
    os.mkfifo(fifo)

    result = {}
    worker = threading.Thread(target=lambda: result.update(preview_artifact(str(fifo))), daemon=True)
    worker.start()
    worker.join(timeout=3)

    assert not worker.is_alive()
    assert "Not a regular file" in result["error"]
    assert result["bytes_read"] == 0
