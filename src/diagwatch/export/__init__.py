# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/export/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Export artifact: snapshot building and atomic JSON writing.

- [`diagwatch.export.snapshot`][diagwatch.export.snapshot]: the `Snapshot`
  and `Health` payloads.
- [`diagwatch.export.writer`][diagwatch.export.writer]: temp-file + rename
  writer tolerant of concurrent-writer races.
"""

from __future__ import annotations

from diagwatch.export.snapshot import Health, Snapshot, build_snapshot
from diagwatch.export.writer import export_snapshot, write_json_atomic

__all__ = [
    "Health",
    "Snapshot",
    "build_snapshot",
    "export_snapshot",
    "write_json_atomic",
]
