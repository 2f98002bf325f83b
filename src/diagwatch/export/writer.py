# topmark:header:start
#
#   project      : DiagWatch
#   file         : writer.py
#   file_relpath : src/diagwatch/export/writer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Atomic JSON writer for the export artifact.

Write protocol:
    1. create the destination directory (parents included);
    2. write the payload to ``<name>.<pid>.<time_ns>.tmp`` next to the destination;
    3. ``os.replace`` the temp file onto the destination.

Several engine instances (one per editor window) may export to the same path.
A rename that loses such a race (missing temp file, existing or locked
destination) is not an error: the temp file is removed and the call returns
``False``. Readers only ever observe a complete previous or complete new file.
"""

from __future__ import annotations

import contextlib
import errno
import os
import time
from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.core.machine.serializers import serialize_json_object

if TYPE_CHECKING:
    from pathlib import Path

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.export.snapshot import Snapshot

logger: DiagwatchLogger = get_logger(__name__)

_RACE_ERRNOS: frozenset[int] = frozenset({errno.ENOENT, errno.EEXIST, errno.EPERM, errno.EACCES})


def is_rename_race(exc: OSError) -> bool:
    """Return True when ``exc`` is an acceptable concurrent-writer rename failure."""
    if isinstance(exc, (FileNotFoundError, FileExistsError, PermissionError)):
        return True
    return exc.errno in _RACE_ERRNOS


def temp_path_for(path: Path) -> Path:
    """Return a unique sibling temp path for ``path``."""
    return path.with_name(f"{path.name}.{os.getpid()}.{time.time_ns()}.tmp")


def write_json_atomic(path: Path, payload: object) -> bool:
    """Serialize ``payload`` to ``path`` atomically.

    Args:
        path (Path): Destination file.
        payload (object): Payload accepted by `serialize_json_object`.

    Returns:
        bool: True when the destination was replaced, False when the rename
            lost a race with another writer.

    Raises:
        OSError: When the temp file cannot be written, or the rename fails
            for a reason other than a concurrent-writer race.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp: Path = temp_path_for(path)
    content: str = serialize_json_object(payload) + "\n"

    try:
        tmp.write_text(content, encoding="utf-8")
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise

    try:
        os.replace(tmp, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink()
        if is_rename_race(exc):
            logger.debug("Export rename raced with another writer for %s: %s", path, exc)
            return False
        raise
    return True


def export_snapshot(snapshot: Snapshot, path: Path) -> bool:
    """Write ``snapshot`` to ``path``; see `write_json_atomic`."""
    written: bool = write_json_atomic(path, snapshot)
    if written:
        logger.debug("Exported %d problems to %s", snapshot.problem_count, path)
    return written
