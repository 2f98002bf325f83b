# topmark:header:start
#
#   project      : DiagWatch
#   file         : loaders.py
#   file_relpath : src/diagwatch/config/io/loaders.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Load and render TOML configuration sources.

Runtime defaults live in code (`load_defaults_dict`); on-disk sources
(``diagwatch.toml`` / ``pyproject.toml``) are parsed with `tomlkit` and
returned as plain `dict` structures.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

import tomlkit
from tomlkit.exceptions import ParseError as TomlkitParseError

from diagwatch.config.keys import Toml
from diagwatch.config.logging import get_logger
from diagwatch.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_EXPORT_INTERVAL_S,
    DEFAULT_MAX_PROBLEMS_PER_FILE,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_SCAN_BATCH_DELAY_MS,
    DEFAULT_SCAN_BATCH_SIZE,
    DEFAULT_SCAN_EXCLUDE,
    DEFAULT_SCAN_FILE_DELAY_MS,
    DEFAULT_SCAN_PATTERNS,
    DEFAULT_SETTLE_MS,
)

if TYPE_CHECKING:
    from pathlib import Path

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.core.diagnostics import DiagnosticLog

    from .types import TomlTable

logger: DiagwatchLogger = get_logger(__name__)


def load_defaults_dict() -> TomlTable:
    """Return DiagWatch's **runtime defaults** as a TOML-shaped dict.

    This function performs no I/O.

    Returns:
        TomlTable: A dict with the ``[engine]``, ``[export]`` and ``[scan]`` tables.
    """
    return {
        Toml.SECTION_ENGINE: {
            Toml.KEY_DEBOUNCE_MS: DEFAULT_DEBOUNCE_MS,
            Toml.KEY_MAX_PROBLEMS_PER_FILE: DEFAULT_MAX_PROBLEMS_PER_FILE,
            Toml.KEY_PERFORMANCE_LOGGING: True,
        },
        Toml.SECTION_EXPORT: {
            Toml.KEY_PATH: "",
            Toml.KEY_INTERVAL_S: DEFAULT_EXPORT_INTERVAL_S,
        },
        Toml.SECTION_SCAN: {
            Toml.KEY_PATTERNS: list(DEFAULT_SCAN_PATTERNS),
            Toml.KEY_EXCLUDE: list(DEFAULT_SCAN_EXCLUDE),
            Toml.KEY_BATCH_SIZE: DEFAULT_SCAN_BATCH_SIZE,
            Toml.KEY_FILE_DELAY_MS: DEFAULT_SCAN_FILE_DELAY_MS,
            Toml.KEY_BATCH_DELAY_MS: DEFAULT_SCAN_BATCH_DELAY_MS,
            Toml.KEY_SETTLE_MS: DEFAULT_SETTLE_MS,
            Toml.KEY_RELOAD_COMMAND: DEFAULT_RELOAD_COMMAND,
        },
    }


def load_toml_dict(path: Path, diagnostics: DiagnosticLog | None = None) -> TomlTable:
    """Load and parse a TOML file from the filesystem.

    Args:
        path: Path to a TOML document (``diagwatch.toml`` or ``pyproject.toml``).
        diagnostics: Optional log receiving an error entry on failure.

    Returns:
        The parsed TOML content.

    Notes:
        - Errors are logged and an empty dict is returned on failure.
        - Encoding is assumed to be UTF-8.
    """
    try:
        text: str = path.read_text(encoding="utf-8")
        doc: tomlkit.TOMLDocument = tomlkit.parse(text)
        data_any: Any = doc.unwrap()
        return cast("TomlTable", data_any) if isinstance(data_any, dict) else {}
    except OSError as e:
        logger.error("Error loading TOML from %s: %s", path, e)
        if diagnostics is not None:
            diagnostics.add_error(f"Cannot read {path}: {e}")
        return {}
    except TomlkitParseError as e:
        logger.error("Error decoding TOML from %s: %s", path, e)
        if diagnostics is not None:
            diagnostics.add_error(f"Invalid TOML in {path}: {e}")
        return {}


def _strip_none_for_toml(value: object) -> object:
    """Remove TOML-incompatible `None` from mappings/lists (TOML has no `null`)."""
    if isinstance(value, Mapping):
        m: Mapping[object, object] = cast("Mapping[object, object]", value)
        return {str(k): _strip_none_for_toml(v) for k, v in m.items() if v is not None}
    if isinstance(value, (list, tuple)):
        seq: list[object] = list(cast("list[object]", value))
        return [_strip_none_for_toml(v) for v in seq if v is not None]
    return value


def to_toml(toml_dict: TomlTable) -> str:
    """Serialize a TOML mapping to a string with `tomlkit`.

    Args:
        toml_dict (TomlTable): The mapping to render; `None` values are omitted.

    Returns:
        str: The TOML document text.
    """
    cleaned: Any = _strip_none_for_toml(toml_dict)
    return cast("str", cast("Any", tomlkit).dumps(cast("Mapping[str, Any]", cleaned)))
