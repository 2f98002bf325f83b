# topmark:header:start
#
#   project      : DiagWatch
#   file         : schemas.py
#   file_relpath : src/diagwatch/core/machine/schemas.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Shared schema primitives for DiagWatch machine output.

This module defines:
- canonical keys for the export artifact and CLI JSON output (`MachineKey`)
- metadata describing the producing tool (`MetaPayload`)
- payload normalization (`normalize_payload`)

The export artifact uses camelCase keys because out-of-process consumers of
the original JSON format expect them; keep them stable.

Normalization rules:
- `Path` -> `str`
- `Enum` -> `Enum.value`
- objects with `.to_dict()` -> normalize of that mapping
- mappings -> dict with stringified keys and normalized values
- sequences/sets -> lists of normalized values
"""

from __future__ import annotations

import platform
from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Final, TypedDict, cast

from diagwatch.constants import DIAGWATCH_VERSION


class MachineKey:
    """Canonical keys used in the export artifact and JSON outputs."""

    META: Final[str] = "meta"

    # Snapshot
    TIMESTAMP: Final[str] = "timestamp"
    PROBLEM_COUNT: Final[str] = "problemCount"
    FILE_COUNT: Final[str] = "fileCount"
    WORKSPACE_FOLDERS: Final[str] = "workspaceFolders"
    PROBLEMS: Final[str] = "problems"
    SUMMARY: Final[str] = "summary"
    HEALTH: Final[str] = "health"

    # Summary
    TOTAL_PROBLEMS: Final[str] = "totalProblems"
    BY_SEVERITY: Final[str] = "bySeverity"
    BY_WORKSPACE: Final[str] = "byWorkspace"
    BY_SOURCE: Final[str] = "bySource"

    # Health
    ACTIVE: Final[str] = "active"
    SUBSCRIBED: Final[str] = "subscribed"
    LAST_UPDATE: Final[str] = "lastUpdate"
    DISPOSED: Final[str] = "disposed"

    # Resource-style payloads
    FILE_PATH: Final[str] = "filePath"
    WORKSPACE: Final[str] = "workspace"
    COUNT: Final[str] = "count"
    GENERATED_AT: Final[str] = "generatedAt"

    # Workspace folder entries
    NAME: Final[str] = "name"
    PATH: Final[str] = "path"

    # Version
    VERSION: Final[str] = "version"

    # Effective configuration
    CONFIG: Final[str] = "config"
    CONFIG_FILES: Final[str] = "configFiles"
    DIAGNOSTICS: Final[str] = "diagnostics"
    DIAGNOSTIC_COUNTS: Final[str] = "diagnosticCounts"


class MetaPayload(TypedDict):
    """Metadata describing the DiagWatch runtime environment for machine output."""

    tool: str
    version: str
    platform: str


def build_meta_payload() -> MetaPayload:
    """Return the `meta` block stamped on JSON outputs."""
    return MetaPayload(
        tool="diagwatch",
        version=DIAGWATCH_VERSION,
        platform=platform.system().lower(),
    )


def normalize_payload(obj: object) -> object:
    """Normalize a payload into JSON-serializable structures.

    Conversions:
      - `Path` -> `str`
      - `Enum` -> `Enum.value`
      - object with callable `.to_dict()` -> normalize(`.to_dict()`)
      - `Mapping` -> `dict[str, normalized value]`
      - `list/tuple/set/frozenset` -> `list[normalized item]`

    Notes:
      - Payload objects should implement `to_dict()` if they want custom
        serialization; dataclasses are not converted implicitly.
      - Mapping keys are stringified to keep JSON object keys valid.

    Args:
        obj: The payload object to normalize.

    Returns:
        A JSON-serializable representation of `obj`.
    """
    if isinstance(obj, Path):
        return str(obj)

    if isinstance(obj, Enum):
        return normalize_payload(obj.value)

    to_dict: Any | None = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return normalize_payload(to_dict())

    if isinstance(obj, Mapping):
        mapping: Mapping[object, Any] = cast("Mapping[object, Any]", obj)
        return {
            (k.value if isinstance(k, Enum) else str(k)): normalize_payload(v)
            for k, v in mapping.items()
        }

    if isinstance(obj, (list, tuple, set, frozenset)):
        seq: Iterator[object] = cast("Iterator[object]", obj)
        return [normalize_payload(v) for v in seq]

    return obj
