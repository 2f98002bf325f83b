# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_writer.py
#   file_relpath : tests/export/test_writer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the atomic export writer.

Rename failures are simulated by monkeypatching `os.replace`; the writer must
never leave a `.tmp` sibling behind.
"""

from __future__ import annotations

import errno
import json
import os
from typing import TYPE_CHECKING

import pytest

from diagwatch.export import writer
from diagwatch.export.writer import is_rename_race, temp_path_for, write_json_atomic
from tests.conftest import parametrize

if TYPE_CHECKING:
    from pathlib import Path


def _tmp_leftovers(directory: Path) -> list[str]:
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".tmp"))


def test_write_creates_parents_and_trailing_newline(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "problems.json"
    assert write_json_atomic(target, {"problemCount": 0, "problems": []}) is True
    text = target.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert json.loads(text) == {"problemCount": 0, "problems": []}
    assert _tmp_leftovers(target.parent) == []


def test_write_replaces_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "problems.json"
    target.write_text("stale", encoding="utf-8")
    assert write_json_atomic(target, {"v": 2}) is True
    assert json.loads(target.read_text(encoding="utf-8")) == {"v": 2}


def test_rename_race_returns_false(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A lost rename leaves the previous file intact and cleans up the temp file."""
    target = tmp_path / "problems.json"
    target.write_text('{"v": 1}\n', encoding="utf-8")

    def _raced(src: object, dst: object) -> None:
        raise FileExistsError(errno.EEXIST, "exists")

    monkeypatch.setattr(writer.os, "replace", _raced)

    assert write_json_atomic(target, {"v": 2}) is False
    assert json.loads(target.read_text(encoding="utf-8")) == {"v": 1}
    assert _tmp_leftovers(tmp_path) == []


def test_other_rename_errors_propagate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "problems.json"

    def _broken(src: object, dst: object) -> None:
        raise OSError(errno.EIO, "I/O error")

    monkeypatch.setattr(writer.os, "replace", _broken)

    with pytest.raises(OSError) as excinfo:
        write_json_atomic(target, {"v": 1})
    assert excinfo.value.errno == errno.EIO
    assert _tmp_leftovers(tmp_path) == []
    assert not target.exists()


@parametrize(
    "exc, expected",
    [
        (FileNotFoundError(errno.ENOENT, "gone"), True),
        (FileExistsError(errno.EEXIST, "exists"), True),
        (PermissionError(errno.EACCES, "denied"), True),
        (OSError(errno.EPERM, "not permitted"), True),
        (OSError(errno.EIO, "io"), False),
        (OSError(errno.ENOSPC, "full"), False),
    ],
)
def test_is_rename_race(exc: OSError, expected: bool) -> None:
    assert is_rename_race(exc) is expected


def test_temp_path_is_unique_sibling(tmp_path: Path) -> None:
    target = tmp_path / "problems.json"
    tmp = temp_path_for(target)
    assert tmp.parent == target.parent
    assert tmp.name.startswith(f"problems.json.{os.getpid()}.")
    assert tmp.name.endswith(".tmp")
